import numpy as np
import pandas as pd
import pytest

from tabvec.models.table import DataTable
from tabvec.schemas.operations import SimilarityRequest
from tabvec.services.column_ops import run_similarity
from tabvec.services.similarity import cosine_scores


def test_cosine_scores_identical_orthogonal_and_mismatched():
    rows = [np.array([1.0, 2.0]), np.array([-2.0, 1.0]), np.array([1.0, 2.0, 3.0]), None]
    scores = cosine_scores(rows, [1.0, 2.0])
    assert scores[0] == pytest.approx(1.0)
    assert scores[1] == pytest.approx(0.0)
    assert scores[2] == 0.0
    assert scores[3] == 0.0


def test_cosine_scores_zero_vectors_score_zero():
    scores = cosine_scores([np.zeros(3), np.array([1.0, 0.0, 0.0])], np.zeros(3))
    assert np.allclose(scores, 0.0)
    assert np.isfinite(scores).all()


def test_run_similarity_appends_and_sorts_descending(settings):
    frame = pd.DataFrame(
        {
            "label": ["far", "near", "missing", "exact", "short"],
            "vec": [[-1.0, 0.0], [1.0, 1.0], None, [2.0, 0.0], [1.0]],
        }
    )
    table = DataTable(frame)
    request = SimilarityRequest(source_column="vec", query_vector=(1.0, 0.0))

    name = run_similarity(table, request, request.query_vector, settings=settings)

    assert name == "vec__prompt_sim"
    current = table.current
    assert current["label"].tolist()[0] == "exact"
    assert current["label"].tolist()[-1] == "far"
    scores = current[name].tolist()
    assert scores == sorted(scores, reverse=True)
    assert current.set_index("label").loc["short", name] == 0.0
    assert current.set_index("label").loc["missing", name] == 0.0


def test_run_similarity_can_leave_order_alone(settings):
    table = DataTable(pd.DataFrame({"vec": [[0.0, 1.0], [1.0, 0.0]]}))
    request = SimilarityRequest(source_column="vec", query_vector=(1.0, 0.0), sort_descending=False)
    run_similarity(table, request, request.query_vector, settings=settings)
    assert table.get_column("vec__prompt_sim").tolist() == pytest.approx([0.0, 1.0])


def test_run_similarity_respects_settings_default(settings):
    table = DataTable(pd.DataFrame({"vec": [[0.0, 1.0], [1.0, 0.0]]}))
    request = SimilarityRequest(source_column="vec", query_vector=(1.0, 0.0), new_column_name="score")
    run_similarity(
        table,
        request,
        request.query_vector,
        settings=settings.model_copy(update={"similarity_auto_sort": False}),
    )
    assert table.get_column("score").tolist() == pytest.approx([0.0, 1.0])
