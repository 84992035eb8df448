"""Exception taxonomy for vector-column operations.

Every error here is local to a single operation: the scheduler catches them at
the tick boundary and reports them to whichever dialog issued the request.
"""

from __future__ import annotations


class VectorOpsError(Exception):
    """Base class for all errors raised by the vector-column pipeline."""


# Validation (raised at submit time, before any job exists)


class ColumnNotFoundError(VectorOpsError, KeyError):
    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"Source column '{column}' not found")

    def __str__(self) -> str:
        return self.args[0]


class ColumnShapeError(VectorOpsError, ValueError):
    def __init__(self, column: str, expected: str, observed: str) -> None:
        self.column = column
        self.expected = expected
        self.observed = observed
        super().__init__(f"Source column '{column}' must be {expected} (found {observed})")


# Extraction


class ExtractionError(VectorOpsError, ValueError):
    """Raised when a vector column cannot be read into a dense matrix."""


class InconsistentVectorLengthError(ExtractionError):
    def __init__(self, row: int, expected: int, actual: int) -> None:
        self.row = row
        self.expected = expected
        self.actual = actual
        super().__init__(f"Inconsistent vector length at row {row}: expected {expected}, got {actual}")


class MissingRowError(ExtractionError):
    def __init__(self, row: int, column: str | None = None) -> None:
        self.row = row
        self.column = column
        where = f" in '{column}'" if column else ""
        super().__init__(f"Row {row} is null or missing{where}")


class ZeroLengthVectorError(ExtractionError):
    def __init__(self, column: str | None = None) -> None:
        self.column = column
        super().__init__("Vectors have zero length")


# Provider


class ProviderError(VectorOpsError, RuntimeError):
    """Transport, authentication or model failure from an embedding provider."""


class ProviderNotConfiguredError(ProviderError):
    pass


class ProviderBatchLengthMismatchError(ProviderError):
    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embeddings provider returned {actual} vectors for a batch of {expected}")


# Configuration


class UnsupportedAlgorithmError(VectorOpsError, ValueError):
    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"{algorithm.upper()} clustering is currently unsupported")


class InvalidClusterCountError(VectorOpsError, ValueError):
    def __init__(self, requested: int, rows: int) -> None:
        self.requested = requested
        self.rows = rows
        super().__init__(f"Cannot form {requested} clusters from {rows} rows")


class MissingEmbeddingConfigError(VectorOpsError, ValueError):
    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(
            f"Column '{column}' has no recorded embedding model; supply a query vector or generate embeddings first"
        )


class OperationCancelledError(VectorOpsError):
    pass
