"""Convenience exports for the table and state models."""

from .state import BusyState, EmbeddingColumnConfig
from .table import DataTable

__all__ = [
    "BusyState",
    "DataTable",
    "EmbeddingColumnConfig",
]
