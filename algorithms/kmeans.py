"""
K-Means Algorithm Implementation.

Lloyd's algorithm (batch K-Means) on Euclidean distance, used as the
partitional engine of the posture analysis and by the elbow sweep. Several
random restarts (`n_init`) are run and the lowest-inertia solution is kept.

References
----------
[1] Lloyd, S., "Least squares quantization in PCM", 1982, IEEE Trans.
    Information Theory, 28(2), pp. 129-137.
[2] MacQueen, J., "Some methods for classification and analysis of multivariate
    observations", 1967, Proc. 5th Berkeley Symp. Math. Stat. Prob., pp. 281-297.
[3] Arthur, D., Vassilvitskii, S., "k-means++: The advantages of careful seeding",
    2007, Proc. 18th ACM-SIAM SODA, pp. 1027-1035.
"""

import time
import numpy as np
import pandas as pd
from typing import Any, Dict, Optional, Union

from utils.errors import DegenerateInputError


class KMeans:
    """
    K-Means clustering (Lloyd's Algorithm).

    Parameters
    ----------
    n_clusters : int
        The number of clusters to form.
    n_init : int, default=10
        Number of random initializations; the run with the lowest inertia wins.
    init : {'k-means++', 'random'}, default='k-means++'
        Centroid seeding method.
    max_iters : int, default=300
        Maximum number of iterations for a single run.
    tol : float, default=1e-4
        Convergence threshold on the squared shift of the centroids.
    random_state : int, optional
        Seed for centroid initialization.
    """

    def __init__(
        self,
        n_clusters: int,
        n_init: int = 10,
        init: str = "k-means++",
        max_iters: int = 300,
        tol: float = 1e-4,
        random_state: Optional[int] = None
    ):
        self.n_clusters = n_clusters
        self.n_init = n_init
        self.init = init
        self.max_iters = max_iters
        self.tol = tol
        self.random_state = random_state
        self.cluster_centers_ = None
        self.labels_ = None
        self.inertia_ = None
        self.sizes_ = None
        self.n_iter_ = 0

        if self.n_init < 1:
            raise ValueError(f"n_init must be >= 1, got {self.n_init}")
        if self.init not in ("k-means++", "random"):
            raise ValueError(f"Init '{self.init}' not supported.")

    def _initialize_centroids(self, X: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
        """
        Picks the starting centroids.

        - 'random': n_clusters distinct data points (MacQueen's second method [2]).
        - 'k-means++': first centroid uniform, each next one drawn with
          probability proportional to the squared distance to the nearest
          centroid chosen so far [3].
        """
        n_samples = X.shape[0]

        if self.init == "random":
            indices = rng.choice(n_samples, size=self.n_clusters, replace=False)
            return X[indices].copy()

        centroids = np.zeros((self.n_clusters, X.shape[1]))
        centroids[0] = X[rng.choice(n_samples)]

        for k in range(1, self.n_clusters):
            min_dists_sq = np.min(self._squared_distances(X, centroids[:k]), axis=1)
            total = np.sum(min_dists_sq)

            # Every point already sits on a centroid
            if total == 0:
                probs = np.ones(n_samples) / n_samples
            else:
                probs = min_dists_sq / total

            centroids[k] = X[rng.choice(n_samples, p=probs)]

        return centroids

    @staticmethod
    def _squared_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
        """Squared Euclidean distance matrix of shape (n_samples, n_clusters)."""
        return np.sum((X[:, np.newaxis, :] - centroids[np.newaxis, :, :]) ** 2, axis=2)

    def _update_centroids(self, X: np.ndarray, labels: np.ndarray, rng: np.random.RandomState) -> np.ndarray:
        """
        Each centroid moves to the mean of its assigned points. An empty
        cluster is re-seeded on a random point.
        """
        centroids = np.zeros((self.n_clusters, X.shape[1]))

        for k in range(self.n_clusters):
            cluster_points = X[labels == k]

            if len(cluster_points) > 0:
                centroids[k] = cluster_points.mean(axis=0)
            else:
                centroids[k] = X[rng.choice(X.shape[0])]

        return centroids

    @staticmethod
    def _compute_inertia(X: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> float:
        """SSE = sum ||x_j - c_i||^2 over every point and its own centroid."""
        return float(np.sum((X - centroids[labels]) ** 2))

    def _single_run(self, X: np.ndarray, rng: np.random.RandomState):
        centroids = self._initialize_centroids(X, rng)
        n_iter = 0

        for n_iter in range(1, self.max_iters + 1):
            labels = np.argmin(self._squared_distances(X, centroids), axis=1)
            new_centroids = self._update_centroids(X, labels, rng)

            centroid_shift = np.sum((new_centroids - centroids) ** 2)
            centroids = new_centroids

            if centroid_shift < self.tol:
                break

        labels = np.argmin(self._squared_distances(X, centroids), axis=1)
        # Final means of the final assignment, so inertia is exact WSS
        centroids = self._update_centroids(X, labels, rng)
        return labels, centroids, self._compute_inertia(X, labels, centroids), n_iter

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        """
        Fit the model on X.

        Raises
        ------
        DegenerateInputError
            If n_clusters is not in [1, n_samples], exceeds the number of
            distinct rows, or every restart ends with an empty cluster.
        """
        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=np.float64)

        n_samples = X.shape[0]
        if not 1 <= self.n_clusters <= n_samples:
            raise DegenerateInputError(
                f"n_clusters must be between 1 and n_samples={n_samples}, got {self.n_clusters}"
            )

        n_distinct = len(np.unique(X, axis=0))
        if n_distinct < self.n_clusters:
            raise DegenerateInputError(
                f"Only {n_distinct} distinct rows for n_clusters={self.n_clusters}; "
                f"some clusters would stay empty"
            )

        rng = np.random.RandomState(self.random_state)
        best = None
        for _ in range(self.n_init):
            run = self._single_run(X, rng)
            # A run ending with an empty cluster only wins if every run does
            complete = len(np.unique(run[0])) == self.n_clusters
            if best is None or (complete, -run[2]) > (best[0], -best[1][2]):
                best = (complete, run)

        complete, (self.labels_, self.cluster_centers_, self.inertia_, self.n_iter_) = best
        self.sizes_ = np.bincount(self.labels_, minlength=self.n_clusters)
        if not complete:
            raise DegenerateInputError(
                f"K-Means left {int(np.sum(self.sizes_ == 0))} of {self.n_clusters} clusters empty"
            )
        return self

    def predict(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """Closest centroid for each sample in X."""
        if self.cluster_centers_ is None:
            raise ValueError("Model has not been fitted yet. Call fit() first.")

        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=np.float64)

        return np.argmin(self._squared_distances(X, self.cluster_centers_), axis=1)

    def fit_predict(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        self.fit(X)
        return self.labels_


def run_kmeans_once(
        X: np.ndarray,
        n_clusters: int,
        random_state: Optional[int] = None,
        n_init: int = 10,
        init: str = "k-means++",
        max_iters: int = 300,
) -> Dict[str, Any]:
    """
    Runs K-Means once and returns the assignment with its metadata.

    Returns
    -------
    dict
        'algorithm', 'n_clusters', 'labels', 'centroids', 'sizes', 'inertia',
        'n_iter', 'runtime_sec'.
    """
    start = time.perf_counter()
    model = KMeans(
        n_clusters=n_clusters,
        n_init=n_init,
        init=init,
        max_iters=max_iters,
        random_state=random_state,
    ).fit(X)
    runtime = time.perf_counter() - start

    return {
        "algorithm": "KMeans",
        "n_clusters": n_clusters,
        "labels": model.labels_,
        "centroids": model.cluster_centers_,
        "sizes": model.sizes_,
        "inertia": model.inertia_,
        "n_iter": model.n_iter_,
        "runtime_sec": runtime,
    }
