"""Dimensionality reduction and clustering primitives.

Classes:
    PcaResult: Projected coordinates plus the explained variance of each fitted component.
    ClusterResult: Per-row labels, centroids and inertia produced by k-means.

Functions:
    clamp_components(requested, dim): Clamp a requested component count into ``1..dim``.
    compute_pca_projection(matrix, n_components): Project rows onto the top principal directions.
    run_kmeans(matrix, n_clusters=...): Assign each row to its nearest of ``n_clusters`` centroids.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from sklearn.cluster import KMeans
from sklearn.decomposition import PCA

from tabvec.core.errors import InvalidClusterCountError

_LOGGER = logging.getLogger(__name__)

# Reserved label for rows a density-based algorithm leaves unassigned; no supported algorithm emits it yet.
NOISE_LABEL = -1


@dataclass(slots=True)
class PcaResult:
    coords: np.ndarray
    explained_variance_ratio: np.ndarray


@dataclass(slots=True)
class ClusterResult:
    labels: np.ndarray
    centroids: np.ndarray
    inertia: float
    n_iter: int = 0


def clamp_components(requested: int, dim: int) -> int:
    return max(1, min(int(requested), dim))


def compute_pca_projection(
    matrix: np.ndarray,
    n_components: int,
    *,
    random_state: int = 42,
) -> PcaResult:
    n_rows, dim = matrix.shape
    k = clamp_components(n_components, dim) if dim else 0
    coords = np.zeros((n_rows, k), dtype=np.float64)
    ratios = np.zeros(k, dtype=np.float64)
    if n_rows < 2 or k == 0:
        return PcaResult(coords=coords, explained_variance_ratio=ratios)

    # A full SVD cannot yield more components than rows; the remainder stay zero.
    fitted = min(k, n_rows)
    pca = PCA(n_components=fitted, svd_solver="full", random_state=random_state)
    coords[:, :fitted] = pca.fit_transform(matrix)
    ratios[:fitted] = np.nan_to_num(pca.explained_variance_ratio_, nan=0.0)
    _LOGGER.debug(
        "PCA fitted %d/%d components on %dx%d matrix (explained %.3f)",
        fitted,
        k,
        n_rows,
        dim,
        float(ratios.sum()),
    )
    return PcaResult(coords=coords, explained_variance_ratio=ratios)


def run_kmeans(
    matrix: np.ndarray,
    *,
    n_clusters: int = 8,
    runs: int = 1,
    tolerance: float = 1e-4,
    random_state: int = 42,
) -> ClusterResult:
    n_rows = matrix.shape[0]
    if n_clusters < 1 or n_clusters > n_rows:
        raise InvalidClusterCountError(n_clusters, n_rows)

    model = KMeans(
        n_clusters=n_clusters,
        n_init=runs,
        tol=tolerance,
        random_state=random_state,
    )
    labels = model.fit_predict(matrix).astype(np.int32)
    return ClusterResult(
        labels=labels,
        centroids=model.cluster_centers_,
        inertia=float(model.inertia_),
        n_iter=int(model.n_iter_),
    )
