"""Cosine similarity between a query vector and the rows of a vector column."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike

DEFAULT_EPSILON = float(np.finfo(np.float64).eps)


def cosine_scores(
    rows: Sequence[np.ndarray | None],
    query: ArrayLike,
    *,
    epsilon: float = DEFAULT_EPSILON,
) -> np.ndarray:
    """Score every row against ``query``.

    Null rows and rows whose length differs from the query score 0.0 instead of failing the
    whole column. Both norms are floored at ``epsilon`` so all-zero vectors score 0.0 too.
    """

    query_vec = np.asarray(query, dtype=np.float64).ravel()
    scores = np.zeros(len(rows), dtype=np.float64)
    comparable = [
        index
        for index, row in enumerate(rows)
        if row is not None and row.shape[0] == query_vec.shape[0]
    ]
    if not comparable or query_vec.size == 0:
        return scores

    matrix = np.vstack([rows[index] for index in comparable])
    query_norm = max(float(np.linalg.norm(query_vec)), epsilon)
    row_norms = np.maximum(np.linalg.norm(matrix, axis=1), epsilon)
    scores[comparable] = (matrix @ query_vec) / (row_norms * query_norm)
    return scores
