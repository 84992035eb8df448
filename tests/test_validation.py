import numpy as np
import pandas as pd
import pyarrow as pa
import pytest

from tabvec.core.errors import ColumnNotFoundError, ColumnShapeError
from tabvec.models.table import DataTable
from tabvec.services.validation import ColumnShape, describe_column_type, validate_column


def _table(**columns) -> DataTable:
    return DataTable(pd.DataFrame(columns))


def test_describe_column_type_labels_common_shapes():
    assert describe_column_type(pd.Series(["a", None, "b"])) == "str"
    assert describe_column_type(pd.Series([1, 2, 3])) == "int64"
    assert describe_column_type(pd.Series([[1.0, 2.0], [3.0, 4.0]])) == "list[float64]"
    assert describe_column_type(pd.Series([np.array([1, 2], dtype=np.int32)], dtype=object)) == "list[int32]"
    assert describe_column_type(pd.Series([["a", "b"]])) == "list[str]"
    assert describe_column_type(pd.Series([None, None], dtype=object)) == "null"
    assert describe_column_type(pd.Series(["a", None], dtype="string")) == "str"


def test_describe_column_type_promotes_mixed_numeric_lists():
    series = pd.Series([[1, 2], [0.5, 1.5]])
    assert describe_column_type(series) == "list[float64]"


def test_describe_column_type_reports_mixed_cells():
    label = describe_column_type(pd.Series(["a", [1.0]]))
    assert label.startswith("mixed[")
    assert "str" in label


def test_validate_text_column_accepts_nullable_strings():
    table = _table(name=["alpha", None, ""])
    assert validate_column(table, "name", ColumnShape.TEXT) == "str"


def test_validate_text_column_rejects_integers():
    table = _table(count=[1, 2, 3])
    with pytest.raises(ColumnShapeError) as excinfo:
        validate_column(table, "count", ColumnShape.TEXT)
    assert excinfo.value.column == "count"
    assert excinfo.value.observed == "int64"
    assert "count" in str(excinfo.value)
    assert "int64" in str(excinfo.value)


def test_validate_vector_column_rejects_lists_of_strings():
    table = _table(tags=[["a", "b"], ["c"]])
    with pytest.raises(ColumnShapeError) as excinfo:
        validate_column(table, "tags", ColumnShape.VECTOR_OF_NUMBERS)
    assert excinfo.value.observed == "list[str]"


def test_validate_vector_column_accepts_integer_vectors():
    table = _table(vec=[[1, 2, 3], None, [4, 5, 6]])
    assert validate_column(table, "vec", ColumnShape.VECTOR_OF_NUMBERS) == "list[int64]"


def test_validate_missing_column_raises_not_found():
    table = _table(vec=[[1.0]])
    with pytest.raises(ColumnNotFoundError) as excinfo:
        validate_column(table, "nope", ColumnShape.VECTOR_OF_NUMBERS)
    assert "nope" in str(excinfo.value)


def test_validate_vector_column_accepts_empty_table():
    table = DataTable(pd.DataFrame({"vec": pd.Series([], dtype=object)}))
    validate_column(table, "vec", ColumnShape.VECTOR_OF_NUMBERS)


def test_validate_vector_column_accepts_all_null_rows():
    table = DataTable(pd.DataFrame({"vec": pd.Series([None, None], dtype=object)}))
    assert validate_column(table, "vec", ColumnShape.VECTOR_OF_NUMBERS) == "null"


def test_validate_vector_column_reads_arrow_list_dtype():
    vectors = pd.Series([[1.0, 0.0], None, [0.0, 1.0]], dtype=pd.ArrowDtype(pa.list_(pa.float32())))
    table = DataTable(pd.DataFrame({"vec": vectors}))
    assert validate_column(table, "vec", ColumnShape.VECTOR_OF_NUMBERS) == "list[float32]"

    fixed = pd.Series([[1, 2], [3, 4]], dtype=pd.ArrowDtype(pa.list_(pa.int64(), 2)))
    assert describe_column_type(fixed) == "list[int64]"


def test_validate_vector_column_rejects_arrow_list_of_strings():
    tags = pd.Series([["a"], ["b", "c"]], dtype=pd.ArrowDtype(pa.list_(pa.string())))
    table = DataTable(pd.DataFrame({"tags": tags}))
    with pytest.raises(ColumnShapeError) as excinfo:
        validate_column(table, "tags", ColumnShape.VECTOR_OF_NUMBERS)
    assert excinfo.value.observed == "list[str]"
