"""
Helpers shared by the agglomerative and divisive engines.

Both engines describe their result as a SciPy linkage matrix, so cutting the
dendrogram and drawing it work the same way whatever direction the tree was
built in.
"""

import numpy as np
from scipy.cluster.hierarchy import cut_tree, fcluster, is_valid_linkage
from typing import Optional

from utils.errors import DegenerateInputError


def cut_dendrogram(
        Z: np.ndarray,
        n_clusters: Optional[int] = None,
        height: Optional[float] = None
) -> np.ndarray:
    """
    Cuts a merge tree into flat labels.

    Exactly one of `n_clusters` / `height` must be given. Cutting at
    `n_clusters` removes the k - 1 highest merges and always yields exactly
    k groups.

    Returns
    -------
    np.ndarray
        Labels 0..k-1 for each leaf.
    """
    if (n_clusters is None) == (height is None):
        raise ValueError("Give exactly one of n_clusters or height")

    n_samples = Z.shape[0] + 1

    if n_clusters is not None:
        if not 1 <= n_clusters <= n_samples:
            raise DegenerateInputError(
                f"n_clusters must be between 1 and n_samples={n_samples}, got {n_clusters}"
            )
        return cut_tree(Z, n_clusters=n_clusters).ravel()

    # fcluster numbers clusters from 1
    return fcluster(Z, t=height, criterion="distance") - 1


def hierarchy_coefficient(Z: np.ndarray) -> float:
    """
    Agglomerative / divisive coefficient of a merge tree.

    For each observation i, m(i) is the height of the first merge it takes
    part in, divided by the height of the final merge. The coefficient is the
    mean of 1 - m(i); values close to 1 indicate a strong clustering
    structure.
    """
    n_samples = Z.shape[0] + 1
    if n_samples < 2:
        return 0.0

    top = Z[-1, 2]
    if top <= 0:
        return 0.0

    first_height = np.empty(n_samples)
    for a, b, h, _ in Z:
        for node in (int(a), int(b)):
            if node < n_samples:
                first_height[node] = h

    return float(np.mean(1.0 - first_height / top))


def check_linkage(Z: np.ndarray) -> np.ndarray:
    """Validates a linkage matrix built outside SciPy."""
    is_valid_linkage(Z, throw=True, name="Z")
    return Z
