"""In-memory tabular store backed by pandas.

Classes:
    DataTable: Holds the current view of a DataFrame plus column visibility, and exposes the
        column accessors the vector-column operations need.
"""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from tabvec.core.errors import ColumnNotFoundError


class DataTable:
    def __init__(self, frame: pd.DataFrame) -> None:
        self._current = frame
        self._hidden: dict[str, bool] = {}

    @property
    def current(self) -> pd.DataFrame:
        return self._current

    @property
    def column_names(self) -> list[str]:
        return [str(name) for name in self._current.columns]

    @property
    def hidden_columns(self) -> set[str]:
        return {name for name, hidden in self._hidden.items() if hidden}

    @property
    def visible_columns(self) -> list[str]:
        hidden = self.hidden_columns
        return [name for name in self.column_names if name not in hidden]

    def __len__(self) -> int:
        return len(self._current.index)

    def has_column(self, name: str) -> bool:
        return name in self._current.columns

    def get_column(self, name: str) -> pd.Series:
        if not self.has_column(name):
            raise ColumnNotFoundError(name)
        return self._current[name]

    def append_column(self, name: str, values: Sequence[Any], *, dtype: Any = None) -> pd.DataFrame:
        """Return a new current view with ``values`` appended as column ``name``.

        The previous frame is left untouched; callers holding it keep a consistent snapshot.
        """

        if self.has_column(name):
            raise ValueError(f"Column '{name}' already exists")
        if len(values) != len(self):
            raise ValueError(f"Column '{name}' has {len(values)} values for {len(self)} rows")

        if dtype is None:
            series = pd.Series(list(values), index=self._current.index, dtype=object)
        else:
            series = pd.Series(values, index=self._current.index, dtype=dtype)
        frame = self._current.copy(deep=False)
        frame[name] = series
        self._current = frame
        return frame

    def set_hidden(self, name: str, hidden: bool = True) -> None:
        if not self.has_column(name):
            raise ColumnNotFoundError(name)
        self._hidden[name] = hidden

    def sort_descending_by(self, name: str) -> pd.DataFrame:
        if not self.has_column(name):
            raise ColumnNotFoundError(name)
        self._current = self._current.sort_values(name, ascending=False, kind="stable")
        return self._current
