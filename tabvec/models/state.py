"""Process-wide state read by the host UI.

Classes:
    BusyState: Progress overlay state written only by the scheduler.
    EmbeddingColumnConfig: Snapshot of the provider/model used to generate an embeddings column.
"""

from __future__ import annotations

from dataclasses import dataclass

from tabvec.schemas.operations import ProviderId


@dataclass(slots=True)
class BusyState:
    active: bool = False
    message: str = ""
    progress: float = 0.0

    def start(self, message: str) -> None:
        self.active = True
        self.message = message
        self.progress = 0.0

    def update(self, message: str, progress: float) -> None:
        self.message = message
        self.progress = min(max(progress, 0.0), 1.0)

    def clear(self) -> None:
        self.active = False
        self.message = ""
        self.progress = 0.0


@dataclass(slots=True, frozen=True)
class EmbeddingColumnConfig:
    provider: ProviderId
    model_name: str
    dimensions: int
