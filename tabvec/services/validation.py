"""Column shape classification.

Functions:
    describe_column_type(series): Observed type label for a column (``str``, ``list[float32]``, ``int64`` ...).
    is_numeric_vector_label(label): Whether a label denotes a list of standard numeric elements.
    validate_column(table, name, shape): Reject columns that do not match the shape an operation needs.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
import pandas as pd
import pyarrow as pa

from tabvec.core.errors import ColumnShapeError
from tabvec.models.table import DataTable
from tabvec.utils.cells import NUMERIC_KINDS, cell_label, is_null_cell

NULL_LABEL = "null"


class ColumnShape(str, Enum):
    TEXT = "text"
    VECTOR_OF_NUMBERS = "vector of numbers"


def describe_column_type(series: pd.Series) -> str:
    dtype = series.dtype
    if isinstance(dtype, pd.StringDtype):
        return "str"
    if isinstance(dtype, pd.ArrowDtype):
        return _arrow_type_label(dtype.pyarrow_dtype)
    if dtype != object:
        return str(dtype)

    labels: set[str] = set()
    for value in series.tolist():
        if is_null_cell(value):
            continue
        labels.add(cell_label(value))
    if not labels:
        return NULL_LABEL
    if len(labels) == 1:
        return labels.pop()
    if all(is_numeric_vector_label(label) for label in labels):
        # rows of differing numeric widths share the promoted element type
        promoted = np.result_type(*(np.dtype(label[len("list[") : -1]) for label in labels))
        return f"list[{promoted.name}]"
    return f"mixed[{', '.join(sorted(labels))}]"


def _arrow_type_label(arrow_type: pa.DataType) -> str:
    if pa.types.is_string(arrow_type) or pa.types.is_large_string(arrow_type):
        return "str"
    if pa.types.is_null(arrow_type):
        return NULL_LABEL
    if pa.types.is_list(arrow_type) or pa.types.is_large_list(arrow_type) or pa.types.is_fixed_size_list(arrow_type):
        inner = arrow_type.value_type
        if pa.types.is_integer(inner) or pa.types.is_floating(inner):
            return f"list[{np.dtype(inner.to_pandas_dtype()).name}]"
        if pa.types.is_string(inner) or pa.types.is_large_string(inner):
            return "list[str]"
        return f"list[{inner}]"
    return str(pd.ArrowDtype(arrow_type))


def is_numeric_vector_label(label: str) -> bool:
    if not (label.startswith("list[") and label.endswith("]")):
        return False
    inner = label[len("list[") : -1]
    try:
        return np.dtype(inner).kind in NUMERIC_KINDS
    except TypeError:
        return False


def validate_column(table: DataTable, name: str, shape: ColumnShape) -> str:
    """Return the observed type label of ``name`` or raise if it cannot serve as ``shape``."""

    series = table.get_column(name)
    observed = describe_column_type(series)
    if shape is ColumnShape.TEXT:
        ok = observed in {"str", NULL_LABEL}
    else:
        # all-null rows are left to extraction, which decides whether nulls are tolerated
        ok = observed == NULL_LABEL or is_numeric_vector_label(observed)
    if not ok:
        raise ColumnShapeError(name, _expected_phrase(shape), observed)
    return observed


def _expected_phrase(shape: ColumnShape) -> str:
    if shape is ColumnShape.TEXT:
        return "text"
    return "a vector of numbers"
