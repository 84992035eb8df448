import numpy as np
import pandas as pd
import pytest

from tabvec.core.errors import (
    InconsistentVectorLengthError,
    InvalidClusterCountError,
    UnsupportedAlgorithmError,
)
from tabvec.models.table import DataTable
from tabvec.schemas.operations import ClusterAlgorithm, ClusterRequest, KMeansOptions, PcaRequest
from tabvec.services.column_ops import run_clustering, run_pca
from tabvec.services.projection import NOISE_LABEL, clamp_components, compute_pca_projection, run_kmeans


def test_clamp_components_bounds():
    assert clamp_components(0, 5) == 1
    assert clamp_components(3, 5) == 3
    assert clamp_components(100, 5) == 5


def test_compute_pca_projection_orders_components_by_variance():
    rng = np.random.default_rng(42)
    data = rng.normal(size=(40, 4)) * np.array([10.0, 5.0, 1.0, 0.1])
    result = compute_pca_projection(data, 4)
    assert result.coords.shape == (40, 4)
    variances = result.coords.var(axis=0)
    assert np.all(np.diff(variances) <= 1e-9)
    assert np.all(np.diff(result.explained_variance_ratio) <= 1e-12)
    assert result.explained_variance_ratio.sum() == pytest.approx(1.0)


def test_compute_pca_projection_single_row_is_zero():
    result = compute_pca_projection(np.array([[0.1, -0.2, 0.3]]), 2)
    assert result.coords.shape == (1, 2)
    assert np.allclose(result.coords, 0.0)


def test_compute_pca_projection_zero_fills_unfittable_components():
    data = np.array([[1.0, 2.0, 3.0, 4.0], [2.0, 1.0, 0.0, 1.0]])
    result = compute_pca_projection(data, 4)
    assert result.coords.shape == (2, 4)
    assert np.allclose(result.coords[:, 2:], 0.0)


def test_run_pca_clamps_requested_dimensions(vector_table):
    name = run_pca(vector_table, PcaRequest(source_column="vec", target_dimensions=100))
    column = vector_table.get_column(name)
    assert name == "vec_pca"
    assert len(column) == len(vector_table)
    assert {len(row) for row in column} == {5}


def test_run_pca_reports_inconsistent_row_and_appends_nothing():
    rows = [[float(i)] * 5 for i in range(6)]
    rows[3] = [0.0, 1.0, 2.0, 3.0]
    table = DataTable(pd.DataFrame({"vec": rows}))
    with pytest.raises(InconsistentVectorLengthError) as excinfo:
        run_pca(table, PcaRequest(source_column="vec", target_dimensions=2))
    assert (excinfo.value.row, excinfo.value.expected, excinfo.value.actual) == (3, 5, 4)
    assert table.column_names == ["vec"]


def test_empty_table_appends_nothing():
    table = DataTable(pd.DataFrame({"vec": pd.Series([], dtype=object)}))
    assert run_pca(table, PcaRequest(source_column="vec")) is None
    assert run_clustering(table, ClusterRequest(source_column="vec")) is None
    assert table.column_names == ["vec"]


def test_run_kmeans_labels_in_range():
    rng = np.random.default_rng(0)
    blobs = np.vstack([rng.normal(loc=center, scale=0.05, size=(10, 2)) for center in (-5.0, 0.0, 5.0)])
    result = run_kmeans(blobs, n_clusters=3, runs=4)
    assert result.labels.dtype == np.int32
    assert set(result.labels.tolist()) == {0, 1, 2}
    assert len(set(result.labels[:10].tolist())) == 1
    assert result.centroids.shape == (3, 2)
    assert NOISE_LABEL not in result.labels
    assert result.n_iter >= 1


def test_run_kmeans_rejects_more_clusters_than_rows():
    with pytest.raises(InvalidClusterCountError):
        run_kmeans(np.zeros((3, 2)), n_clusters=4)


def test_run_clustering_uses_request_options(vector_table):
    request = ClusterRequest(source_column="vec", kmeans=KMeansOptions(n_clusters=4), new_column_name="group")
    name = run_clustering(vector_table, request)
    labels = vector_table.get_column(name)
    assert name == "group"
    assert labels.dtype == np.int32
    assert labels.between(0, 3).all()


def test_run_clustering_rejects_dbscan_and_appends_nothing(vector_table):
    request = ClusterRequest(source_column="vec", algorithm=ClusterAlgorithm.DBSCAN)
    with pytest.raises(UnsupportedAlgorithmError) as excinfo:
        run_clustering(vector_table, request)
    assert "DBSCAN" in str(excinfo.value)
    assert vector_table.column_names == ["id", "vec"]
