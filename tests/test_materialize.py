import pandas as pd
import pytest

from tabvec.models.table import DataTable
from tabvec.services.materialize import (
    CLUSTER_NAMING,
    EMBEDDINGS_NAMING,
    SIMILARITY_NAMING,
    materialize_column,
    resolve_column_name,
)


def test_resolve_column_name_defaults_and_collisions():
    existing = {"text", "text_emb", "text_emb__emb"}
    assert resolve_column_name(existing, "", source_column="text", rule=EMBEDDINGS_NAMING) == "text_emb__emb__emb"
    assert resolve_column_name(existing, "  ", source_column="vec", rule=CLUSTER_NAMING) == "vec_cluster"
    assert resolve_column_name(existing, "text", source_column="text", rule=SIMILARITY_NAMING) == "text__sim"
    assert resolve_column_name(set(), "", source_column="q", rule=SIMILARITY_NAMING) == "q__prompt_sim"


def test_materialize_column_is_non_destructive():
    table = DataTable(pd.DataFrame({"a": [1, 2]}))
    before = table.current
    name = materialize_column(table, [[0.1], None], "", source_column="a", rule=EMBEDDINGS_NAMING, hidden=True)

    assert name == "a_emb"
    assert list(before.columns) == ["a"]
    assert table.column_names == ["a", "a_emb"]
    assert table.get_column("a_emb").tolist() == [[0.1], None]
    assert table.hidden_columns == {"a_emb"}
    assert table.visible_columns == ["a"]


def test_append_column_rejects_wrong_length():
    table = DataTable(pd.DataFrame({"a": [1, 2]}))
    with pytest.raises(ValueError):
        table.append_column("b", [1])
    assert table.column_names == ["a"]
