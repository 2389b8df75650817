"""
Agglomerative Clustering Implementation (Wrapper).

Wraps SciPy's hierarchical `linkage` so that the full merge tree is kept for
the dendrogram, then cuts it into flat labels. Ward's minimum-variance
criterion is the default: it gives the compact, evenly sized groups the
posture comparison looks for.

References
----------
[1] Ward, J.H., "Hierarchical grouping to optimize an objective function",
    1963, J. Amer. Statist. Assoc., 58, pp. 236-244.
"""

import time
import numpy as np
from scipy.cluster.hierarchy import linkage as scipy_linkage
from typing import Any, Dict, Optional

from utils.errors import DegenerateInputError
from .hierarchy import cut_dendrogram, hierarchy_coefficient

LINKAGE_METHODS = ("ward", "complete", "average", "single")


def build_merge_tree(X: np.ndarray, linkage: str = "ward", metric: str = "euclidean") -> np.ndarray:
    """
    Builds the bottom-up merge tree.

    Parameters
    ----------
    X : np.ndarray
        Input matrix (n_samples, n_features).
    linkage : str, default='ward'
        "ward", "complete", "average" or "single".
    metric : str, default='euclidean'
        Distance metric. Ward requires 'euclidean'.

    Returns
    -------
    np.ndarray
        SciPy linkage matrix of shape (n_samples - 1, 4).
    """
    if linkage not in LINKAGE_METHODS:
        raise ValueError(f"Linkage '{linkage}' not supported. Use one of {LINKAGE_METHODS}")
    if linkage == "ward" and metric != "euclidean":
        raise ValueError("Ward linkage requires the euclidean metric")

    X = np.asarray(X, dtype=np.float64)
    if X.shape[0] < 2:
        raise DegenerateInputError(f"Hierarchical clustering needs at least 2 rows, got {X.shape[0]}")

    return scipy_linkage(X, method=linkage, metric=metric)


def run_agglomerative_once(
        X: np.ndarray,
        n_clusters: Optional[int] = None,
        linkage: str = "ward",
        metric: str = "euclidean",
        height: Optional[float] = None,
        linkage_matrix: Optional[np.ndarray] = None,
) -> Dict[str, Any]:
    """
    Runs agglomerative clustering once and cuts the tree.

    Parameters
    ----------
    X : np.ndarray
        The input feature matrix.
    n_clusters : int, optional
        Number of groups to cut into.
    linkage : str, default='ward'
        Linkage criterion.
    metric : str, default='euclidean'
        Distance metric.
    height : float, optional
        Cut height, used instead of `n_clusters`.
    linkage_matrix : np.ndarray, optional
        Merge tree already built on X with the same linkage and metric; it is
        cut directly.

    Returns
    -------
    dict
        'algorithm', 'n_clusters', 'linkage', 'metric', 'labels',
        'linkage_matrix', 'coefficient', 'runtime_sec'.
    """
    start = time.perf_counter()

    Z = linkage_matrix
    if Z is None:
        Z = build_merge_tree(X, linkage=linkage, metric=metric)
    labels = cut_dendrogram(Z, n_clusters=n_clusters, height=height)

    runtime = time.perf_counter() - start

    return {
        "algorithm": "Agglomerative",
        "n_clusters": len(np.unique(labels)),
        "linkage": linkage,
        "metric": metric,
        "labels": labels,
        "linkage_matrix": Z,
        "coefficient": hierarchy_coefficient(Z),
        "runtime_sec": runtime,
    }
