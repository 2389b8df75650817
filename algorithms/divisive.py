"""
Divisive Hierarchical Clustering (DIANA).

Top-down counterpart of the agglomerative engine. All rows start in one
cluster; the cluster with the largest diameter is split by the splinter-group
rule until only singletons remain:

1. The object with the largest average dissimilarity to the rest of its
   cluster opens the splinter group.
2. Each remaining object whose average dissimilarity to the rest exceeds its
   average dissimilarity to the splinter group by the largest positive margin
   joins the splinter group. Repeat until no margin is positive.

Each split is recorded at the height of the diameter of the cluster it
splits, and the tree is returned as a SciPy linkage matrix so it can be cut
and drawn exactly like the agglomerative one. There is a single splitting
rule, hence no linkage parameter.

References
----------
[1] Kaufman, L., Rousseeuw, P.J., "Finding Groups in Data: An Introduction to
    Cluster Analysis", 1990, Wiley, Chapter 6 (Program DIANA).
"""

import time
import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform
from typing import Any, Dict, List, Optional, Union

from utils.errors import DegenerateInputError
from .hierarchy import check_linkage, cut_dendrogram, hierarchy_coefficient

METRICS = ("euclidean", "manhattan")


def mad_standardize(X: np.ndarray) -> np.ndarray:
    """
    Subtracts each column's mean and divides by its mean absolute deviation.
    """
    centered = X - X.mean(axis=0)
    mad = np.mean(np.abs(centered), axis=0)
    zero_cols = np.flatnonzero(mad == 0)
    if len(zero_cols) > 0:
        raise DegenerateInputError(
            f"Columns {zero_cols.tolist()} have zero mean absolute deviation and cannot be standardized"
        )
    return centered / mad


def split_cluster(D: np.ndarray) -> np.ndarray:
    """
    Splinter-group split of one cluster.

    Parameters
    ----------
    D : np.ndarray
        Square dissimilarity matrix of the cluster's members (m >= 2).

    Returns
    -------
    np.ndarray
        Boolean mask, True for members of the splinter group.
    """
    m = D.shape[0]
    in_splinter = np.zeros(m, dtype=bool)

    # Diagonal is zero, so row sums are sums over the other members
    sum_rest = D.sum(axis=1)
    sum_splinter = np.zeros(m)

    first = int(np.argmax(sum_rest / (m - 1)))
    in_splinter[first] = True
    sum_rest -= D[:, first]
    sum_splinter += D[:, first]

    n_splinter, n_rest = 1, m - 1
    while n_rest > 1:
        candidates = np.flatnonzero(~in_splinter)
        margin = sum_rest[candidates] / (n_rest - 1) - sum_splinter[candidates] / n_splinter
        best = int(np.argmax(margin))
        if margin[best] <= 0:
            break

        moved = candidates[best]
        in_splinter[moved] = True
        sum_rest -= D[:, moved]
        sum_splinter += D[:, moved]
        n_splinter += 1
        n_rest -= 1

    return in_splinter


class DivisiveClustering:
    """
    DIANA divisive clustering.

    Parameters
    ----------
    metric : str, default='euclidean'
        'euclidean' or 'manhattan'.
    standardize : bool, default=False
        Standardize columns (mean / mean absolute deviation) before computing
        dissimilarities.
    """

    def __init__(self, metric: str = "euclidean", standardize: bool = False):
        if metric not in METRICS:
            raise ValueError(f"Metric '{metric}' not supported. Use one of {METRICS}")
        self.metric = metric
        self.standardize = standardize
        self.linkage_matrix_ = None
        self.coefficient_ = None

    def _dissimilarities(self, X: np.ndarray) -> np.ndarray:
        if self.standardize:
            X = mad_standardize(X)
        scipy_metric = "cityblock" if self.metric == "manhattan" else "euclidean"
        return squareform(pdist(X, metric=scipy_metric))

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        """
        Builds the full split tree.

        Returns
        -------
        self
        """
        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=np.float64)

        n_samples = X.shape[0]
        if n_samples < 2:
            raise DegenerateInputError(f"Hierarchical clustering needs at least 2 rows, got {n_samples}")

        D = self._dissimilarities(X)

        # Internal nodes as (left, right, height, size, depth); children are
        # either ('leaf', index) or ('node', position in `nodes`).
        nodes: List[list] = []
        stack = [(np.arange(n_samples), None, 0)]

        while stack:
            members, parent, depth = stack.pop()
            if len(members) == 1:
                ref = ("leaf", int(members[0]))
            else:
                sub = D[np.ix_(members, members)]
                mask = split_cluster(sub)
                nodes.append([None, None, float(sub.max()), len(members), depth])
                ref = ("node", len(nodes) - 1)
                stack.append((members[~mask], (ref[1], 1), depth + 1))
                stack.append((members[mask], (ref[1], 0), depth + 1))

            if parent is not None:
                nodes[parent[0]][parent[1]] = ref

        self.linkage_matrix_ = self._to_linkage(nodes, n_samples)
        self.coefficient_ = hierarchy_coefficient(self.linkage_matrix_)
        return self

    @staticmethod
    def _to_linkage(nodes: List[Any], n_samples: int) -> np.ndarray:
        """
        Orders splits from lowest to highest and numbers them as SciPy merges.
        A child never sits higher than its parent, so on equal heights the
        deeper node goes first.
        """
        order = sorted(range(len(nodes)), key=lambda i: (nodes[i][2], -nodes[i][4]))
        merge_id = {node: n_samples + rank for rank, node in enumerate(order)}

        def resolve(ref):
            kind, value = ref
            return value if kind == "leaf" else merge_id[value]

        Z = np.zeros((len(nodes), 4))
        for rank, i in enumerate(order):
            left, right, height, size, _ = nodes[i]
            Z[rank] = [resolve(left), resolve(right), height, size]

        return check_linkage(Z)

    def cut(self, n_clusters: Optional[int] = None, height: Optional[float] = None) -> np.ndarray:
        if self.linkage_matrix_ is None:
            raise ValueError("Model has not been fitted yet. Call fit() first.")
        return cut_dendrogram(self.linkage_matrix_, n_clusters=n_clusters, height=height)

    def fit_predict(self, X: Union[np.ndarray, pd.DataFrame], n_clusters: int) -> np.ndarray:
        self.fit(X)
        return self.cut(n_clusters=n_clusters)


def run_divisive_once(
        X: np.ndarray,
        n_clusters: Optional[int] = None,
        metric: str = "euclidean",
        standardize: bool = False,
        height: Optional[float] = None,
        linkage_matrix: Optional[np.ndarray] = None,
) -> Dict[str, Any]:
    """
    Runs DIANA once and cuts the tree.

    A `linkage_matrix` from an earlier run on the same data (same metric and
    standardization) is cut directly instead of splitting again.

    Returns
    -------
    dict
        'algorithm', 'n_clusters', 'metric', 'standardize', 'labels',
        'linkage_matrix', 'coefficient', 'runtime_sec'.
    """
    start = time.perf_counter()

    if linkage_matrix is None:
        model = DivisiveClustering(metric=metric, standardize=standardize).fit(X)
        linkage_matrix, coefficient = model.linkage_matrix_, model.coefficient_
    else:
        coefficient = hierarchy_coefficient(linkage_matrix)
    labels = cut_dendrogram(linkage_matrix, n_clusters=n_clusters, height=height)

    runtime = time.perf_counter() - start

    return {
        "algorithm": "Divisive",
        "n_clusters": len(np.unique(labels)),
        "metric": metric,
        "standardize": standardize,
        "labels": labels,
        "linkage_matrix": linkage_matrix,
        "coefficient": coefficient,
        "runtime_sec": runtime,
    }
