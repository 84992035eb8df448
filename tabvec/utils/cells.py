"""Cell-level helpers for pandas object columns."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

_SEQUENCE_TYPES = (list, tuple, np.ndarray)
NUMERIC_KINDS = frozenset("iuf")


def is_sequence_cell(value: Any) -> bool:
    return isinstance(value, _SEQUENCE_TYPES)


def is_null_cell(value: Any) -> bool:
    """Return True for None/NaN/NA cells; sequences and strings are never null."""

    if value is None:
        return True
    if is_sequence_cell(value) or isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def sequence_label(value: Any) -> str:
    """Describe a sequence cell as ``list[<element dtype>]``."""

    try:
        array = np.asarray(value)
    except ValueError:
        return "list[nested]"
    if array.ndim != 1:
        return "list[nested]"
    if array.dtype.kind == "U":
        return "list[str]"
    if array.dtype.kind == "O":
        return "list[object]"
    return f"list[{array.dtype.name}]"


def cell_label(value: Any) -> str:
    if isinstance(value, str):
        return "str"
    if is_sequence_cell(value):
        return sequence_label(value)
    return type(value).__name__
