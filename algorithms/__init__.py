"""
Clustering Algorithms Package.

Every engine is reachable through one capability,
``cluster(X, n_clusters, method, **params)``, which returns a result
dictionary holding at least 'algorithm', 'n_clusters', 'labels' and
'runtime_sec'. Engine specific extras ('centroids', 'memberships',
'linkage_matrix', ...) ride along in the same dictionary, so the evaluation
and rendering code never needs to know which algorithm produced a result.

Modules
-------
- kmeans: K-Means (Lloyd's Algorithm) with random restarts.
- agg_clustering: Agglomerative clustering (Ward by default) on SciPy.
- divisive: Divisive clustering (DIANA).
- fuzzy_c_means: Fuzzy C-Means with degeneracy diagnostics.
- hierarchy: Dendrogram cut and coefficient helpers.
- pca: Principal Component Analysis for the 2-D projections.
"""

from typing import Any, Dict

import numpy as np

from .agg_clustering import run_agglomerative_once
from .divisive import DivisiveClustering, run_divisive_once
from .fuzzy_c_means import FuzzyCMeans, run_fuzzy_once
from .kmeans import KMeans, run_kmeans_once
from .pca import PCA

CLUSTERING_ENGINES = {
    "kmeans": run_kmeans_once,
    "agglomerative": run_agglomerative_once,
    "divisive": run_divisive_once,
    "fuzzy": run_fuzzy_once,
}


def cluster(X: np.ndarray, n_clusters: int, method: str = "kmeans", **params) -> Dict[str, Any]:
    """
    Runs the named clustering engine.

    Parameters
    ----------
    X : np.ndarray
        Standardized matrix.
    n_clusters : int
        Target number of clusters.
    method : str, default='kmeans'
        One of CLUSTERING_ENGINES.
    **params
        Engine specific parameters (random_state, linkage, m, ...).
    """
    if method not in CLUSTERING_ENGINES:
        raise ValueError(f"Unknown clustering method '{method}'. Use one of {sorted(CLUSTERING_ENGINES)}")
    return CLUSTERING_ENGINES[method](X, n_clusters, **params)
