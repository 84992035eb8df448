"""Pydantic schemas for queued column operations.

Each operation kind has its own request model carrying only its own parameters. The UI builds
one of these after the user confirms a dialog and hands it to the scheduler.

Classes:
    OperationKind, ProviderId, ClusterAlgorithm: Enumerations shared by requests and services.
    KMeansOptions, DbscanOptions: Clustering parameter groups.
    PendingSimilarityFlow: Similarity prompt to resume once a prerequisite embeddings column exists.
    EmbeddingsRequest, PcaRequest, ClusterRequest, SimilarityRequest: Queued request variants.

Functions:
    parse_request(payload): Validate a raw mapping into the matching request variant.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator


class OperationKind(str, Enum):
    EMBEDDINGS = "embeddings"
    PCA = "pca"
    CLUSTER = "cluster"
    SIMILARITY = "similarity"


class ProviderId(str, Enum):
    OPENAI = "openai"
    AZURE_OPENAI = "azure_openai"
    OLLAMA = "ollama"

    @property
    def display_name(self) -> str:
        return _PROVIDER_DISPLAY_NAMES[self]


_PROVIDER_DISPLAY_NAMES = {
    ProviderId.OPENAI: "OpenAI",
    ProviderId.AZURE_OPENAI: "Azure OpenAI",
    ProviderId.OLLAMA: "Ollama",
}


class ClusterAlgorithm(str, Enum):
    KMEANS = "kmeans"
    DBSCAN = "dbscan"


class KMeansOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    n_clusters: int = Field(default=8, ge=1)
    runs: int = Field(default=1, ge=1)
    tolerance: float = Field(default=1e-4, ge=0.0)


class DbscanOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_points: int = Field(default=5, ge=1)
    tolerance: float = Field(default=0.5, gt=0.0)


class PendingSimilarityFlow(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt_text: str = Field(min_length=1)
    similarity_column: str = ""


class _ColumnOperationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_column: str = Field(min_length=1)
    new_column_name: str = ""

    @field_validator("new_column_name")
    @classmethod
    def strip_new_column_name(cls, value: str) -> str:
        return value.strip()


class EmbeddingsRequest(_ColumnOperationRequest):
    kind: Literal[OperationKind.EMBEDDINGS] = OperationKind.EMBEDDINGS
    provider: ProviderId = ProviderId.OPENAI
    model_name: str = Field(default="text-embedding-3-small", min_length=1)
    dimensions: int = Field(default=0, ge=0)
    hide_new_column: bool = False
    then_similarity: Optional[PendingSimilarityFlow] = None


class PcaRequest(_ColumnOperationRequest):
    kind: Literal[OperationKind.PCA] = OperationKind.PCA
    target_dimensions: int = Field(default=2, ge=0)


class ClusterRequest(_ColumnOperationRequest):
    kind: Literal[OperationKind.CLUSTER] = OperationKind.CLUSTER
    algorithm: ClusterAlgorithm = ClusterAlgorithm.KMEANS
    kmeans: Optional[KMeansOptions] = None
    dbscan: Optional[DbscanOptions] = None


class SimilarityRequest(_ColumnOperationRequest):
    kind: Literal[OperationKind.SIMILARITY] = OperationKind.SIMILARITY
    query_vector: Optional[tuple[float, ...]] = None
    prompt_text: Optional[str] = None
    sort_descending: Optional[bool] = None

    @field_validator("prompt_text")
    @classmethod
    def normalise_prompt(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        text = value.strip()
        return text or None

    @model_validator(mode="after")
    def require_query(self) -> "SimilarityRequest":
        if self.query_vector is None and self.prompt_text is None:
            raise ValueError("Either query_vector or prompt_text is required")
        if self.query_vector is not None and len(self.query_vector) == 0:
            raise ValueError("query_vector must not be empty")
        return self


OperationRequest = Annotated[
    Union[EmbeddingsRequest, PcaRequest, ClusterRequest, SimilarityRequest],
    Field(discriminator="kind"),
]

_REQUEST_ADAPTER: TypeAdapter[Any] = TypeAdapter(OperationRequest)


def parse_request(payload: dict[str, Any]) -> OperationRequest:
    return _REQUEST_ADAPTER.validate_python(payload)
