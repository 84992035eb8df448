"""Table-level vector operations that complete within a single scheduler tick.

Each function reads its source column, computes the result and appends it as a new column.
Nothing is written until the computation has succeeded, so a failure leaves the table as it was.

Functions:
    run_pca(table, request, ...): Project a vector column onto its top principal components.
    run_clustering(table, request, ...): Label every row of a vector column with a cluster id.
    run_similarity(table, request, query, ...): Score every row against a query vector.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from tabvec.core.config import Settings, get_settings
from tabvec.core.errors import UnsupportedAlgorithmError
from tabvec.models.table import DataTable
from tabvec.schemas.operations import (
    ClusterAlgorithm,
    ClusterRequest,
    KMeansOptions,
    PcaRequest,
    SimilarityRequest,
)
from tabvec.services.extraction import extract_matrix, extract_rows
from tabvec.services.materialize import (
    CLUSTER_NAMING,
    PCA_NAMING,
    SIMILARITY_NAMING,
    materialize_column,
)
from tabvec.services.projection import compute_pca_projection, run_kmeans
from tabvec.services.similarity import cosine_scores

_LOGGER = logging.getLogger(__name__)


def run_pca(table: DataTable, request: PcaRequest, *, settings: Settings | None = None) -> Optional[str]:
    """Append the projection and return the new column's name; ``None`` for an empty table."""

    settings = settings or get_settings()
    series = table.get_column(request.source_column)
    if series.empty:
        _LOGGER.info("Skipping PCA on %r: table has no rows", request.source_column)
        return None

    result = compute_pca_projection(
        extract_matrix(series),
        request.target_dimensions,
        random_state=settings.pca_random_state,
    )
    return materialize_column(
        table,
        result.coords.tolist(),
        request.new_column_name,
        source_column=request.source_column,
        rule=PCA_NAMING,
    )


def default_kmeans_options(settings: Settings | None = None) -> KMeansOptions:
    settings = settings or get_settings()
    return KMeansOptions(
        n_clusters=settings.kmeans_default_clusters,
        runs=settings.kmeans_default_runs,
        tolerance=settings.kmeans_default_tolerance,
    )


def run_clustering(
    table: DataTable,
    request: ClusterRequest,
    *,
    settings: Settings | None = None,
) -> Optional[str]:
    settings = settings or get_settings()
    if request.algorithm is not ClusterAlgorithm.KMEANS:
        raise UnsupportedAlgorithmError(request.algorithm.value)

    series = table.get_column(request.source_column)
    if series.empty:
        _LOGGER.info("Skipping clustering on %r: table has no rows", request.source_column)
        return None

    options = request.kmeans or default_kmeans_options(settings)
    result = run_kmeans(
        extract_matrix(series),
        n_clusters=options.n_clusters,
        runs=options.runs,
        tolerance=options.tolerance,
        random_state=settings.kmeans_random_state,
    )
    _LOGGER.info(
        "k-means on %r: %d clusters, inertia %.4f after %d iterations",
        request.source_column,
        options.n_clusters,
        result.inertia,
        result.n_iter,
    )
    return materialize_column(
        table,
        result.labels,
        request.new_column_name,
        source_column=request.source_column,
        rule=CLUSTER_NAMING,
        dtype=np.int32,
    )


def run_similarity(
    table: DataTable,
    request: SimilarityRequest,
    query: Sequence[float],
    *,
    settings: Settings | None = None,
    sort_descending: Optional[bool] = None,
) -> str:
    """Append cosine scores against ``query`` and, unless disabled, sort the table by them.

    ``sort_descending`` overrides both the request and ``settings.similarity_auto_sort``.
    """

    settings = settings or get_settings()
    rows = extract_rows(table.get_column(request.source_column))
    scores = cosine_scores(rows, query, epsilon=settings.similarity_epsilon)
    name = materialize_column(
        table,
        scores,
        request.new_column_name,
        source_column=request.source_column,
        rule=SIMILARITY_NAMING,
        dtype=np.float64,
    )

    if sort_descending is None:
        sort_descending = request.sort_descending
    if sort_descending is None:
        sort_descending = settings.similarity_auto_sort
    if sort_descending:
        table.sort_descending_by(name)
    return name
