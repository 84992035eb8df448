"""Deduplicated, resumable embedding generation for a text column.

The job collapses the source column to its distinct values, requests embeddings for one bounded
slice of them per scheduler turn, and maps the results back onto the original rows at the end.
The provider therefore sees each distinct string exactly once, however many rows repeat it.

Classes:
    DistinctValueTable: Distinct non-null strings in first-seen order plus the row -> index mapping.
    JobProgress: Outcome of advancing a job by one turn.
    EmbeddingJob: The resumable job state.

Functions:
    column_texts(series): Read a column as nullable strings, coercing non-text cells.
    request_embeddings(provider, ...): Call the provider port and enforce one vector per input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

import pandas as pd

from tabvec.core.errors import ProviderBatchLengthMismatchError, ProviderError
from tabvec.schemas.operations import EmbeddingsRequest, PendingSimilarityFlow, ProviderId
from tabvec.services.providers import EmbeddingProvider
from tabvec.utils.cells import is_null_cell

_LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 256


def column_texts(series: pd.Series) -> list[Optional[str]]:
    texts: list[Optional[str]] = []
    for value in series.tolist():
        if is_null_cell(value):
            texts.append(None)
        elif isinstance(value, str):
            texts.append(value)
        else:
            texts.append(str(value))
    return texts


@dataclass(slots=True)
class DistinctValueTable:
    uniques: list[str] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)
    row_indices: list[Optional[int]] = field(default_factory=list)

    @classmethod
    def from_values(cls, values: Iterable[Optional[str]]) -> "DistinctValueTable":
        table = cls()
        for value in values:
            if value is None:
                table.row_indices.append(None)
                continue
            position = table.index.get(value)
            if position is None:
                position = len(table.uniques)
                table.index[value] = position
                table.uniques.append(value)
            table.row_indices.append(position)
        return table

    def __len__(self) -> int:
        return len(self.uniques)


class JobProgress(str, Enum):
    CONTINUE = "continue"
    DONE = "done"


def request_embeddings(
    provider: EmbeddingProvider,
    provider_id: ProviderId,
    model: str,
    texts: Sequence[str],
    dimensions: int = 0,
) -> list[list[float]]:
    try:
        vectors = provider.embed(provider_id, model, list(texts), dimensions)
    except ProviderError:
        raise
    except Exception as exc:
        raise ProviderError(f"{provider_id.display_name} embeddings request failed: {exc}") from exc

    if len(vectors) != len(texts):
        raise ProviderBatchLengthMismatchError(len(texts), len(vectors))
    try:
        return [[float(value) for value in vector] for vector in vectors]
    except (TypeError, ValueError) as exc:
        raise ProviderError(f"{provider_id.display_name} returned a non-numeric embedding") from exc


@dataclass(slots=True)
class EmbeddingJob:
    source_column: str
    new_column_name: str
    provider: ProviderId
    model_name: str
    dimensions: int
    hide_new_column: bool
    distinct: DistinctValueTable
    batch_size: int = DEFAULT_BATCH_SIZE
    then_similarity: Optional[PendingSimilarityFlow] = None
    unique_embeddings: list[Optional[list[float]]] = field(default_factory=list)
    next_start: int = 0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if not self.unique_embeddings:
            self.unique_embeddings = [None] * len(self.distinct)

    @classmethod
    def from_request(
        cls,
        request: EmbeddingsRequest,
        series: pd.Series,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> "EmbeddingJob":
        distinct = DistinctValueTable.from_values(column_texts(series))
        _LOGGER.info(
            "Embedding job for %r: %d rows, %d distinct values, batch size %d",
            request.source_column,
            len(distinct.row_indices),
            len(distinct),
            batch_size,
        )
        return cls(
            source_column=request.source_column,
            new_column_name=request.new_column_name,
            provider=request.provider,
            model_name=request.model_name,
            dimensions=request.dimensions,
            hide_new_column=request.hide_new_column,
            distinct=distinct,
            batch_size=batch_size,
            then_similarity=request.then_similarity,
        )

    @property
    def total_uniques(self) -> int:
        return len(self.distinct)

    @property
    def is_complete(self) -> bool:
        return self.next_start >= self.total_uniques

    @property
    def progress(self) -> float:
        if self.total_uniques == 0:
            return 1.0
        return self.next_start / self.total_uniques

    def advance(self, provider: EmbeddingProvider) -> JobProgress:
        """Embed the next slice of distinct values; at most one provider call per invocation."""

        if self.is_complete:
            return JobProgress.DONE

        start = self.next_start
        end = min(start + self.batch_size, self.total_uniques)
        batch = self.distinct.uniques[start:end]
        vectors = request_embeddings(provider, self.provider, self.model_name, batch, self.dimensions)
        for offset, vector in enumerate(vectors):
            self.unique_embeddings[start + offset] = vector
        self.next_start = end
        _LOGGER.debug("Embedded distinct values %d..%d of %d", start, end, self.total_uniques)
        return JobProgress.DONE if self.is_complete else JobProgress.CONTINUE

    def row_vectors(self) -> list[Optional[list[float]]]:
        if not self.is_complete:
            raise RuntimeError("Embedding job finalized before all batches completed")
        rows: list[Optional[list[float]]] = []
        for position in self.distinct.row_indices:
            if position is None:
                rows.append(None)
            else:
                rows.append(list(self.unique_embeddings[position]))
        return rows
