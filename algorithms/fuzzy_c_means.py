"""
Fuzzy C-Means (FCM) Implementation.

Each row receives a membership weight per cluster; weights are non-negative
and sum to 1 across clusters. The fuzziness exponent `m` (> 1) controls how
soft the partition is: close to 1 the memberships are nearly hard, large
values push every membership towards 1/k.

That last regime is a degenerate solution, not just a numerical nuisance, so
the model exposes diagnostics (`min_max_membership_`, Dunn's partition
coefficient) and warns (or raises) when the memberships are all close to
1/k.

References
----------
[1] Bezdek, J.C., Ehrlich, R., Full, W., "FCM: The fuzzy c-means clustering
    algorithm", 1984, Computers & Geosciences, 10(2-3), pp. 191-203.
[2] Dunn, J.C., "Well-separated clusters and optimal fuzzy partitions", 1974,
    J. Cybernetics, 4(1), pp. 95-104.
"""

import time
import warnings
import numpy as np
import pandas as pd
from typing import Any, Dict, Optional, Union

from utils.errors import ConvergenceWarning, DegenerateInputError

DEGENERATE_POLICIES = ("warn", "raise")


class FuzzyCMeans:
    """
    Fuzzy C-Means clustering.

    Parameters
    ----------
    n_clusters : int
        The number of clusters to form.
    m : float, default=2.0
        Fuzziness (membership) exponent. Must be > 1.
    max_iters : int, default=300
        Maximum number of iterations.
    tol : float, default=1e-5
        Convergence tolerance on the change in the membership matrix U.
    degenerate_tol : float, default=1e-2
        The solution counts as completely fuzzy when every membership lies
        within this distance of 1/k.
    on_degenerate : {'warn', 'raise'}, default='warn'
        Emit a ConvergenceWarning or raise DegenerateInputError on a
        completely fuzzy solution.
    random_state : int, optional
        Seed for random initialization of the membership matrix.
    """

    def __init__(
            self,
            n_clusters: int,
            m: float = 2.0,
            max_iters: int = 300,
            tol: float = 1e-5,
            degenerate_tol: float = 1e-2,
            on_degenerate: str = "warn",
            random_state: Optional[int] = None
    ):
        if m <= 1:
            raise ValueError(f"Fuzziness exponent m must be > 1, got {m}")
        if on_degenerate not in DEGENERATE_POLICIES:
            raise ValueError(f"on_degenerate must be one of {DEGENERATE_POLICIES}, got '{on_degenerate}'")

        self.n_clusters = n_clusters
        self.m = m
        self.max_iters = max_iters
        self.tol = tol
        self.degenerate_tol = degenerate_tol
        self.on_degenerate = on_degenerate
        self.random_state = random_state

        self.centroids = None
        self.u = None  # Membership matrix (N x C)
        self.labels_ = None
        self.n_iter_ = 0
        self.converged_ = False
        self.min_max_membership_ = None
        self.partition_coefficient_ = None
        self.normalized_partition_coefficient_ = None
        self.n_crisp_clusters_ = None
        self.is_degenerate_ = False

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        """
        Execute the clustering algorithm.

        Returns
        -------
        self
        """
        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=np.float64)

        n_samples = X.shape[0]
        if not 1 <= self.n_clusters <= n_samples:
            raise DegenerateInputError(
                f"n_clusters must be between 1 and n_samples={n_samples}, got {self.n_clusters}"
            )

        rng = np.random.RandomState(self.random_state)

        # 1. Random U with rows summing to 1 (Eq 2b in [1])
        self.u = rng.rand(n_samples, self.n_clusters)
        self.u = self.u / self.u.sum(axis=1, keepdims=True)
        self.converged_ = False

        for iteration in range(self.max_iters):
            self.n_iter_ = iteration + 1
            u_prev = self.u

            # 2. Centroids: V_j = sum(u_ij^m * x_i) / sum(u_ij^m)  (Eq 11a in [1])
            u_pow_m = self.u ** self.m
            denominator = u_pow_m.sum(axis=0).reshape(-1, 1)
            numerator = np.dot(u_pow_m.T, X)

            self.centroids = np.divide(
                numerator,
                denominator,
                out=np.zeros_like(numerator),
                where=denominator != 0
            )

            # 3. Memberships (Eq 11b in [1])
            self.u = self._calculate_membership(X)

            # 4. Convergence (Eq 14 in [1])
            if np.max(np.abs(self.u - u_prev)) < self.tol:
                self.converged_ = True
                break

        self.labels_ = np.argmax(self.u, axis=1)
        self._compute_diagnostics()
        self._check_degenerate()
        return self

    def _calculate_membership(self, X: np.ndarray) -> np.ndarray:
        """
        u_ik = 1 / sum_j (d_ik / d_ij)^(2 / (m - 1))

        Computed in log space: for m close to 1 the exponent is large and the
        direct powers overflow.
        """
        exponent = 2.0 / (self.m - 1)

        dist_matrix = np.linalg.norm(X[:, np.newaxis, :] - self.centroids[np.newaxis, :, :], axis=2)

        # log of (1 / d)^exponent, shifted per row before exponentiating
        log_inv = -exponent * np.log(np.fmax(dist_matrix, 1e-300))
        log_inv -= log_inv.max(axis=1, keepdims=True)
        inv_dist_pow = np.exp(log_inv)
        u_new = inv_dist_pow / inv_dist_pow.sum(axis=1, keepdims=True)

        # A point sitting exactly on a centroid belongs to it entirely
        on_centroid = dist_matrix == 0
        rows = np.flatnonzero(on_centroid.any(axis=1))
        if len(rows) > 0:
            u_new[rows] = on_centroid[rows] / on_centroid[rows].sum(axis=1, keepdims=True)

        return u_new

    def _compute_diagnostics(self):
        k = self.n_clusters
        self.min_max_membership_ = float(self.u.max(axis=1).min())

        # Dunn's partition coefficient F = sum u^2 / n, in [1/k, 1]
        pc = float(np.sum(self.u ** 2) / self.u.shape[0])
        self.partition_coefficient_ = pc
        self.normalized_partition_coefficient_ = (pc - 1.0 / k) / (1.0 - 1.0 / k) if k > 1 else 1.0

        self.n_crisp_clusters_ = int(len(np.unique(self.labels_)))

    def _check_degenerate(self):
        k = self.n_clusters
        self.is_degenerate_ = k > 1 and bool(np.max(np.abs(self.u - 1.0 / k)) < self.degenerate_tol)
        if not self.is_degenerate_:
            return

        message = (
            f"Fuzzy clustering with m={self.m} and k={k} converged to complete fuzziness: "
            f"all memberships are within {self.degenerate_tol} of 1/k "
            f"(min max membership {self.min_max_membership_:.4f}). Try a smaller m."
        )
        if self.on_degenerate == "raise":
            raise DegenerateInputError(message)
        warnings.warn(message, ConvergenceWarning, stacklevel=3)

    def fit_predict(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """
        Fits the model and returns hard cluster labels.
        """
        self.fit(X)
        return self.labels_


def run_fuzzy_once(
        X: np.ndarray,
        n_clusters: int,
        m: float = 2.0,
        random_state: Optional[int] = None,
        max_iters: int = 300,
        on_degenerate: str = "warn",
) -> Dict[str, Any]:
    """
    Runs Fuzzy C-Means once.

    Returns
    -------
    dict
        'algorithm', 'n_clusters', 'param_m', 'labels', 'memberships',
        'centroids', 'min_max_membership', 'partition_coefficient',
        'normalized_partition_coefficient', 'n_crisp_clusters', 'degenerate',
        'converged', 'n_iter', 'runtime_sec'.
    """
    start = time.perf_counter()
    model = FuzzyCMeans(
        n_clusters=n_clusters,
        m=m,
        max_iters=max_iters,
        on_degenerate=on_degenerate,
        random_state=random_state,
    ).fit(X)
    runtime = time.perf_counter() - start

    return {
        "algorithm": "FuzzyCMeans",
        "n_clusters": n_clusters,
        "param_m": m,
        "labels": model.labels_,
        "memberships": model.u,
        "centroids": model.centroids,
        "min_max_membership": model.min_max_membership_,
        "partition_coefficient": model.partition_coefficient_,
        "normalized_partition_coefficient": model.normalized_partition_coefficient_,
        "n_crisp_clusters": model.n_crisp_clusters_,
        "degenerate": model.is_degenerate_,
        "converged": model.converged_,
        "n_iter": model.n_iter_,
        "runtime_sec": runtime,
    }
