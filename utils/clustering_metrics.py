"""
Cluster quality evaluation for the posture analysis.

This module covers the three diagnostics used to compare the clusterings
against the two grouping hypotheses (by subject, by gesture):

1. Within-cluster sum of squares over a range of k (the "elbow" curve).
2. Average silhouette width, for one assignment or swept over k.
3. Sorted cluster-size fractions of a predicted assignment next to those of
   a ground-truth grouping.

The size comparison is descriptive. It does not match predicted clusters to
true groups, so it must not be read as an accuracy score. Adjusted Rand index
and purity are provided for the same side-by-side reading.

References
----------
[1] Rousseeuw, P.J., "Silhouettes: a graphical aid to the interpretation and
    validation of cluster analysis", 1987, J. Comput. Appl. Math., 20, pp. 53-65.
"""

import numpy as np
import pandas as pd
from sklearn.metrics import (
    adjusted_rand_score,
    confusion_matrix,
    silhouette_samples,
    silhouette_score,
)
from tqdm import tqdm
from typing import Any, Callable, Dict, Iterable, Optional

from .errors import DegenerateInputError


# ---------------------------------------------------------------------
# Within-cluster variance
# ---------------------------------------------------------------------

def total_ss(X: np.ndarray) -> float:
    """Total sum of squared distances to the overall centroid."""
    X = np.asarray(X, dtype=np.float64)
    return float(np.sum((X - X.mean(axis=0)) ** 2))


def within_cluster_ss(X: np.ndarray, labels: np.ndarray) -> float:
    """
    Total within-cluster sum of squares.

    WSS = sum_k sum_{x in C_k} ||x - mean(C_k)||^2
    """
    X = np.asarray(X, dtype=np.float64)
    labels = np.asarray(labels)
    wss = 0.0
    for k in np.unique(labels):
        members = X[labels == k]
        wss += np.sum((members - members.mean(axis=0)) ** 2)
    return float(wss)


def elbow_sweep(
        X: np.ndarray,
        k_values: Iterable[int],
        random_state: Optional[int] = None,
        n_init: int = 10,
        show_progress: bool = False,
) -> pd.DataFrame:
    """
    Runs k-means for every k and records the within-cluster sum of squares.

    No knee detection is attempted; the whole curve is returned for plotting.

    Parameters
    ----------
    X : np.ndarray
        Standardized matrix.
    k_values : iterable of int
        Cluster counts to evaluate.
    random_state : int, optional
        Seed passed to every k-means run.
    n_init : int, default=10
        Restarts per k-means run.
    show_progress : bool, default=False
        Display a tqdm bar.

    Returns
    -------
    pd.DataFrame
        Columns 'n_clusters', 'wss', 'wss_ratio' (wss / total ss).
    """
    # Local import keeps utils importable without the algorithms package
    from algorithms.kmeans import KMeans

    tss = total_ss(X)
    records = []
    k_values = list(k_values)
    for k in tqdm(k_values, desc="Elbow sweep", unit="k", disable=not show_progress):
        model = KMeans(n_clusters=k, n_init=n_init, random_state=random_state).fit(X)
        records.append({
            "n_clusters": k,
            "wss": model.inertia_,
            "wss_ratio": model.inertia_ / tss if tss > 0 else 0.0,
        })
    return pd.DataFrame(records, columns=["n_clusters", "wss", "wss_ratio"])


# ---------------------------------------------------------------------
# Silhouette
# ---------------------------------------------------------------------

def _check_silhouette_labels(X: np.ndarray, labels: np.ndarray) -> int:
    n_labels = len(np.unique(labels))
    n_samples = np.asarray(X).shape[0]
    if not 2 <= n_labels <= n_samples - 1:
        raise DegenerateInputError(
            f"Silhouette needs between 2 and n_samples - 1 clusters, got {n_labels} "
            f"clusters for {n_samples} samples"
        )
    return n_labels


def average_silhouette(X: np.ndarray, labels: np.ndarray, metric: str = "euclidean") -> float:
    """
    Average silhouette width over all rows.

    s(i) = (b(i) - a(i)) / max(a(i), b(i)), where a(i) is the mean distance
    to the other members of its cluster and b(i) the mean distance to the
    members of the nearest other cluster [1].
    """
    _check_silhouette_labels(X, labels)
    return float(silhouette_score(X, labels, metric=metric))


def silhouette_values(X: np.ndarray, labels: np.ndarray, metric: str = "euclidean") -> np.ndarray:
    """Per-row silhouette widths (used by the silhouette plot)."""
    _check_silhouette_labels(X, labels)
    return silhouette_samples(X, labels, metric=metric)


def silhouette_sweep(
        X: np.ndarray,
        k_values: Iterable[int],
        labeller: Optional[Callable[[np.ndarray, int], np.ndarray]] = None,
        random_state: Optional[int] = None,
        show_progress: bool = False,
) -> pd.DataFrame:
    """
    Average silhouette width across a range of k.

    Parameters
    ----------
    X : np.ndarray
        Standardized matrix.
    k_values : iterable of int
        Cluster counts (each must be >= 2).
    labeller : callable, optional
        ``labeller(X, k) -> labels``. Defaults to k-means with `random_state`.
    random_state : int, optional
        Seed for the default k-means labeller.
    show_progress : bool, default=False
        Display a tqdm bar.

    Returns
    -------
    pd.DataFrame
        Columns 'n_clusters' and 'avg_silhouette'.
    """
    if labeller is None:
        from algorithms.kmeans import KMeans

        def labeller(data, k):
            return KMeans(n_clusters=k, random_state=random_state).fit_predict(data)

    records = []
    k_values = list(k_values)
    for k in tqdm(k_values, desc="Silhouette sweep", unit="k", disable=not show_progress):
        labels = labeller(X, k)
        records.append({"n_clusters": k, "avg_silhouette": average_silhouette(X, labels)})
    return pd.DataFrame(records, columns=["n_clusters", "avg_silhouette"])


def best_k(sweep: pd.DataFrame, score_column: str = "avg_silhouette") -> int:
    """Returns the k with the highest score in a sweep table."""
    if sweep.empty:
        raise DegenerateInputError("Cannot pick a best k from an empty sweep")
    return int(sweep.loc[sweep[score_column].idxmax(), "n_clusters"])


# ---------------------------------------------------------------------
# Cluster-size distributions
# ---------------------------------------------------------------------

def cluster_size_fractions(labels: np.ndarray) -> np.ndarray:
    """
    Fraction of rows in each cluster, sorted ascending.

    Labels are only counted, never matched, so any label type works.
    """
    labels = np.asarray(labels)
    if labels.size == 0:
        raise DegenerateInputError("Cannot compute size fractions of an empty assignment")
    _, counts = np.unique(labels, return_counts=True)
    return np.sort(counts / labels.size)


def compare_size_distributions(y_pred: np.ndarray, y_true: np.ndarray) -> pd.DataFrame:
    """
    Puts the sorted size fractions of a clustering next to those of a
    ground-truth grouping.

    Both columns are sorted ascending, so rank 1 is the smallest cluster. The
    shorter vector is padded with zeros in front, which lines up the largest
    clusters of both vectors on the last rank.

    Returns
    -------
    pd.DataFrame
        Columns 'rank', 'predicted', 'true'.
    """
    predicted = cluster_size_fractions(y_pred)
    true = cluster_size_fractions(y_true)

    n = max(len(predicted), len(true))
    predicted = np.concatenate([np.zeros(n - len(predicted)), predicted])
    true = np.concatenate([np.zeros(n - len(true)), true])

    return pd.DataFrame({
        "rank": np.arange(1, n + 1),
        "predicted": predicted,
        "true": true,
    })


# ---------------------------------------------------------------------
# External agreement with a grouping hypothesis
# ---------------------------------------------------------------------

def purity_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Purity: share of rows belonging to the majority true group of their
    cluster.

    Purity = (1 / N) * sum_k (max_j (n_kj))
    """
    # Rows = true groups, columns = predicted clusters
    cm = confusion_matrix(y_true, y_pred)
    return float(np.sum(np.max(cm, axis=0)) / np.sum(cm))


def compute_clustering_metrics(
        X: np.ndarray,
        y_true: np.ndarray,
        y_pred: np.ndarray
) -> Dict[str, Any]:
    """
    Computes the summary numbers reported for one clustering run.

    Returns
    -------
    dict
        'wss', 'avg_silhouette' (NaN when undefined, i.e. a single cluster),
        'ari', 'purity', 'n_found_clusters'.
    """
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)

    n_found = len(np.unique(y_pred))
    if 2 <= n_found <= len(y_pred) - 1:
        silhouette = average_silhouette(X, y_pred)
    else:
        silhouette = float("nan")

    return {
        "wss": within_cluster_ss(X, y_pred),
        "avg_silhouette": silhouette,
        "ari": float(adjusted_rand_score(y_true, y_pred)),
        "purity": purity_score(y_true, y_pred),
        "n_found_clusters": n_found,
    }
