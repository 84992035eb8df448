"""Embedding provider port and OpenAI-compatible implementations.

Classes:
    EmbeddingProvider: Protocol the scheduler calls with a batch of distinct strings.
    EmbeddingBatch: Vectors plus metadata returned by one embeddings request.
    OpenAIEmbeddingBackend: Wraps an ``openai`` client (OpenAI, Azure OpenAI or Ollama's compatible API).
    EmbeddingGateway: Dispatches port calls to the backend configured for each provider.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

import openai
from openai import AzureOpenAI, OpenAI
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from tabvec.core.config import Settings, get_settings
from tabvec.core.errors import ProviderError, ProviderNotConfiguredError
from tabvec.schemas.operations import ProviderId

_LOGGER = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class EmbeddingProvider(Protocol):
    def embed(
        self,
        provider: ProviderId,
        model: str,
        texts: Sequence[str],
        dimensions: int = 0,
    ) -> list[list[float]]:
        """Return one vector per input string, in order. ``dimensions == 0`` selects the model default."""

    def display_name(self, provider: ProviderId) -> str:
        ...


@dataclass(slots=True)
class EmbeddingBatch:
    vectors: list[list[float]]
    model: str
    dim: int
    model_revision: str | None = None
    provider: str = "openai"


class OpenAIEmbeddingBackend:
    def __init__(
        self,
        client: Optional[Any],
        *,
        provider: ProviderId = ProviderId.OPENAI,
        max_attempts: int = 3,
        wait: Optional[wait_base] = None,
    ) -> None:
        self._client = client
        self._provider = provider
        self._max_attempts = max(1, max_attempts)
        self._wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=20)

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def embed_texts(
        self,
        texts: Iterable[str],
        *,
        model: str,
        dimensions: int = 0,
    ) -> EmbeddingBatch:
        docs = list(texts)
        if self._client is None:
            raise ProviderNotConfiguredError(f"{self._provider.display_name} client not configured")

        if not docs:
            return EmbeddingBatch(vectors=[], model=model, dim=0, provider=self._provider.value)

        payload: dict[str, Any] = dict(model=model, input=docs)
        if dimensions > 0:
            payload["dimensions"] = dimensions

        response = self._create(payload)
        data = sorted(
            enumerate(response.data),
            key=lambda pair: getattr(pair[1], "index", pair[0]),
        )
        vectors = [list(item.embedding) for _, item in data]
        return EmbeddingBatch(
            vectors=vectors,
            model=model,
            dim=len(vectors[0]) if vectors else 0,
            model_revision=getattr(response, "model", None),
            provider=self._provider.value,
        )

    def _create(self, payload: dict[str, Any]):
        retryer = Retrying(
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            wait=self._wait,
            stop=stop_after_attempt(self._max_attempts),
            reraise=True,
        )
        return retryer(self._client.embeddings.create, **payload)


class EmbeddingGateway:
    def __init__(self, backends: Mapping[ProviderId, OpenAIEmbeddingBackend]) -> None:
        self._backends = dict(backends)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "EmbeddingGateway":
        settings = settings or get_settings()
        attempts = settings.provider_max_attempts
        backends: dict[ProviderId, OpenAIEmbeddingBackend] = {}

        if settings.openai_api_key:
            client = OpenAI(
                api_key=settings.openai_api_key.get_secret_value(),
                base_url=settings.openai_base_url,
            )
            backends[ProviderId.OPENAI] = OpenAIEmbeddingBackend(
                client, provider=ProviderId.OPENAI, max_attempts=attempts
            )

        if settings.azure_openai_api_key and settings.azure_openai_endpoint:
            client = AzureOpenAI(
                api_key=settings.azure_openai_api_key.get_secret_value(),
                azure_endpoint=settings.azure_openai_endpoint,
                api_version=settings.azure_openai_api_version,
            )
            backends[ProviderId.AZURE_OPENAI] = OpenAIEmbeddingBackend(
                client, provider=ProviderId.AZURE_OPENAI, max_attempts=attempts
            )

        if settings.ollama_host:
            # Ollama ignores the key but the client requires one.
            client = OpenAI(base_url=f"{settings.ollama_host.rstrip('/')}/v1", api_key="ollama")
            backends[ProviderId.OLLAMA] = OpenAIEmbeddingBackend(
                client, provider=ProviderId.OLLAMA, max_attempts=attempts
            )

        _LOGGER.debug("Configured embedding providers: %s", ", ".join(p.value for p in backends) or "none")
        return cls(backends)

    @property
    def providers(self) -> list[ProviderId]:
        return list(self._backends)

    def display_name(self, provider: ProviderId) -> str:
        return provider.display_name

    def embed(
        self,
        provider: ProviderId,
        model: str,
        texts: Sequence[str],
        dimensions: int = 0,
    ) -> list[list[float]]:
        backend = self._backends.get(provider)
        if backend is None or not backend.is_configured:
            raise ProviderNotConfiguredError(f"{provider.display_name} is not configured")
        try:
            batch = backend.embed_texts(texts, model=model, dimensions=dimensions)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(f"{provider.display_name} embeddings request failed: {exc}") from exc
        _LOGGER.debug(
            "%s embedded %d texts with %s (revision %s, dim %d)",
            provider.display_name,
            len(batch.vectors),
            batch.model,
            batch.model_revision or "unknown",
            batch.dim,
        )
        return batch.vectors


def default_model_for(provider: ProviderId, settings: Settings | None = None) -> str:
    settings = settings or get_settings()
    if provider is ProviderId.AZURE_OPENAI:
        return settings.azure_openai_embedding_deployment
    if provider is ProviderId.OLLAMA:
        return settings.ollama_embedding_model
    return settings.openai_embedding_model
