"""Runtime configuration helpers.

Classes:
    Settings: Pydantic settings model capturing environment-driven defaults.

Functions:
    get_settings(): Return a cached Settings instance shared by the scheduler and providers.
"""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TABVEC_",
        extra="ignore",
    )

    app_name: str = "Tabular Vector Operations"
    default_embedding_provider: str = "openai"
    openai_api_key: SecretStr | None = None
    openai_base_url: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    azure_openai_api_key: SecretStr | None = None
    azure_openai_endpoint: str | None = None
    azure_openai_api_version: str = "2024-02-01"
    azure_openai_embedding_deployment: str = "text-embedding-3-small"
    ollama_host: str = "http://localhost:11434"
    ollama_embedding_model: str = "nomic-embed-text"
    provider_max_attempts: int = Field(default=3, ge=1)
    embedding_batch_size: int = Field(default=256, ge=1)
    similarity_epsilon: float = Field(default=2.220446049250313e-16, gt=0.0)
    similarity_auto_sort: bool = True
    pca_random_state: int = 42
    kmeans_default_clusters: int = Field(default=8, ge=1)
    kmeans_default_runs: int = Field(default=1, ge=1)
    kmeans_default_tolerance: float = Field(default=1e-4, ge=0.0)
    kmeans_random_state: int = 42


@lru_cache()
def get_settings() -> Settings:
    return Settings()
