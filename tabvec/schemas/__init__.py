"""Convenience exports for operation schemas.

Re-exports the request models so consumers can import from one module.
"""

from .operations import (
    ClusterAlgorithm,
    ClusterRequest,
    DbscanOptions,
    EmbeddingsRequest,
    KMeansOptions,
    OperationKind,
    OperationRequest,
    PcaRequest,
    PendingSimilarityFlow,
    ProviderId,
    SimilarityRequest,
    parse_request,
)

__all__ = [
    "ClusterAlgorithm",
    "ClusterRequest",
    "DbscanOptions",
    "EmbeddingsRequest",
    "KMeansOptions",
    "OperationKind",
    "OperationRequest",
    "PcaRequest",
    "PendingSimilarityFlow",
    "ProviderId",
    "SimilarityRequest",
    "parse_request",
]
