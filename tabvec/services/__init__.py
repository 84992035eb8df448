"""Service layer exports.

Expose the scheduler, the embedding gateway and the single-tick column operations.
"""

from .column_ops import run_clustering, run_pca, run_similarity
from .providers import EmbeddingGateway, EmbeddingProvider
from .scheduler import OperationScheduler, TickResult, TickStatus

__all__ = [
    "EmbeddingGateway",
    "EmbeddingProvider",
    "OperationScheduler",
    "TickResult",
    "TickStatus",
    "run_clustering",
    "run_pca",
    "run_similarity",
]
