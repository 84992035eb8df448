"""Bootstrap helpers for hosting the vector-column pipeline.

Functions:
    create_scheduler(data, provider=None, settings=None): Wire a table, an embedding provider and
        settings into a ready :class:`OperationScheduler`.
    embeddings_request(source_column, ...): Build an embeddings request using the configured
        default provider and its default model.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import pandas as pd

from tabvec.core.config import Settings, get_settings
from tabvec.models.table import DataTable
from tabvec.schemas.operations import EmbeddingsRequest, ProviderId
from tabvec.services.providers import EmbeddingGateway, EmbeddingProvider, default_model_for
from tabvec.services.scheduler import OperationScheduler

_LOGGER = logging.getLogger(__name__)


def create_scheduler(
    data: Union[pd.DataFrame, DataTable],
    *,
    provider: Optional[EmbeddingProvider] = None,
    settings: Settings | None = None,
) -> OperationScheduler:
    settings = settings or get_settings()
    table = data if isinstance(data, DataTable) else DataTable(data)
    if provider is None:
        provider = EmbeddingGateway.from_settings(settings)
    _LOGGER.debug("%s ready with %d rows and %d columns", settings.app_name, len(table), len(table.column_names))
    return OperationScheduler(table, provider, settings=settings)


def embeddings_request(
    source_column: str,
    *,
    settings: Settings | None = None,
    **overrides: Any,
) -> EmbeddingsRequest:
    settings = settings or get_settings()
    provider = ProviderId(overrides.pop("provider", settings.default_embedding_provider))
    overrides.setdefault("model_name", default_model_for(provider, settings))
    return EmbeddingsRequest(source_column=source_column, provider=provider, **overrides)
