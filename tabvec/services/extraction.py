"""Read vector-valued columns into numpy arrays.

Functions:
    to_vector(value, row=..., column=...): Convert one sequence cell to a float64 vector.
    extract_matrix(series): Dense ``n x d`` float64 matrix; every row present and of equal length.
    extract_rows(series): Null-tolerant variant returning one vector (or None) per row.
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from tabvec.core.errors import (
    ColumnShapeError,
    InconsistentVectorLengthError,
    MissingRowError,
    ZeroLengthVectorError,
)
from tabvec.utils.cells import NUMERIC_KINDS, cell_label, is_null_cell, is_sequence_cell


def to_vector(value: Any, *, row: int, column: str) -> np.ndarray:
    if not is_sequence_cell(value):
        raise ColumnShapeError(column, "a vector of numbers", f"{cell_label(value)} at row {row}")
    try:
        array = np.asarray(value)
    except ValueError as exc:
        raise ColumnShapeError(column, "a vector of numbers", f"list[nested] at row {row}") from exc
    if array.ndim != 1 or (array.size and array.dtype.kind not in NUMERIC_KINDS):
        raise ColumnShapeError(column, "a vector of numbers", f"{cell_label(value)} at row {row}")
    return array.astype(np.float64, copy=False)


def extract_matrix(series: pd.Series) -> np.ndarray:
    column = str(series.name)
    values = series.tolist()
    if not values:
        return np.empty((0, 0), dtype=np.float64)

    vectors: list[np.ndarray] = []
    expected: int | None = None
    for row, value in enumerate(values):
        if is_null_cell(value):
            raise MissingRowError(row, column)
        vector = to_vector(value, row=row, column=column)
        if expected is None:
            expected = vector.size
        elif vector.size != expected:
            raise InconsistentVectorLengthError(row, expected, vector.size)
        vectors.append(vector)

    if not expected:
        raise ZeroLengthVectorError(column)
    return np.vstack(vectors)


def extract_rows(series: pd.Series) -> list[np.ndarray | None]:
    column = str(series.name)
    rows: list[np.ndarray | None] = []
    for row, value in enumerate(series.tolist()):
        if is_null_cell(value):
            rows.append(None)
        else:
            rows.append(to_vector(value, row=row, column=column))
    return rows
