from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd
import pytest

from tabvec.core.config import Settings
from tabvec.models.table import DataTable
from tabvec.schemas.operations import ProviderId
from tabvec.services.scheduler import OperationScheduler


def fake_vector(text: str) -> list[float]:
    """Deterministic 3-d embedding; equal texts always map to equal vectors."""

    codes = [ord(ch) for ch in text]
    return [float(len(text)), float(sum(codes) % 97), 1.0 + 0.5 * (sum(codes) % 5)]


class FakeEmbeddingProvider:
    def __init__(self, *, fail_on_call: int | None = None, drop_last: bool = False) -> None:
        self.embed_calls: int = 0
        self.embed_payloads: list[list[str]] = []
        self.requests: list[tuple[ProviderId, str, int]] = []
        self.fail_on_call = fail_on_call
        self.drop_last = drop_last

    def display_name(self, provider: ProviderId) -> str:
        return provider.display_name

    def embed(
        self,
        provider: ProviderId,
        model: str,
        texts: Sequence[str],
        dimensions: int = 0,
    ) -> list[list[float]]:
        self.embed_calls += 1
        self.embed_payloads.append(list(texts))
        self.requests.append((provider, model, dimensions))
        if self.fail_on_call is not None and self.embed_calls == self.fail_on_call:
            raise ConnectionError("upstream unavailable")
        vectors = [fake_vector(text) for text in texts]
        if self.drop_last and vectors:
            vectors.pop()
        return vectors

    @property
    def embedded_texts(self) -> list[str]:
        return [text for payload in self.embed_payloads for text in payload]


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None, embedding_batch_size=256)


@pytest.fixture()
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture()
def pets_table() -> DataTable:
    frame = pd.DataFrame({"animal": ["cat", "dog", "cat", "", None]})
    return DataTable(frame)


@pytest.fixture()
def vector_table() -> DataTable:
    rng = np.random.default_rng(7)
    vectors = rng.normal(size=(12, 5))
    frame = pd.DataFrame(
        {
            "id": list(range(12)),
            "vec": [row.tolist() for row in vectors],
        }
    )
    return DataTable(frame)


@pytest.fixture()
def scheduler(pets_table: DataTable, provider: FakeEmbeddingProvider, settings: Settings) -> OperationScheduler:
    return OperationScheduler(pets_table, provider, settings=settings)


@pytest.fixture()
def make_provider():
    return FakeEmbeddingProvider


@pytest.fixture()
def expected_vector():
    return fake_vector
