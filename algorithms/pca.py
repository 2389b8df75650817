"""
Principal Component Analysis for the report projections.

Only used to draw cluster assignments in two dimensions; the clustering
engines always work on the full standardized matrix. The components come
from a thin SVD of the centred matrix, with signs fixed so that the largest
loading of each component is positive and figures stay stable between runs.

References
----------
[1] Jolliffe, I.T., "Principal Component Analysis", 2nd ed., 2002, Springer.
"""

import numpy as np
import pandas as pd
from typing import Union


class PCA:
    """
    Principal Component Analysis.

    Parameters
    ----------
    n_components : int
        Number of principal components to keep.

    Attributes
    ----------
    components_ : np.ndarray
        Loadings, shape (n_features, n_components).
    explained_variance_ratio : np.ndarray
        Share of the total variance carried by each kept component.
    """

    def __init__(self, n_components: int):
        self.n_components = n_components
        self.mean_ = None
        self.components_ = None
        self.explained_variance_ = None
        self.explained_variance_ratio = None

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        if isinstance(X, pd.DataFrame):
            X = X.values
        X = np.asarray(X, dtype=np.float64)

        n_samples, n_features = X.shape
        if not 1 <= self.n_components <= min(n_samples, n_features):
            raise ValueError(
                f"n_components must be between 1 and {min(n_samples, n_features)}, got {self.n_components}"
            )

        self.mean_ = X.mean(axis=0)
        _, singular_values, vt = np.linalg.svd(X - self.mean_, full_matrices=False)

        loadings = vt[:self.n_components].T
        signs = np.sign(loadings[np.argmax(np.abs(loadings), axis=0), np.arange(self.n_components)])
        signs[signs == 0] = 1.0
        self.components_ = loadings * signs

        variance = singular_values ** 2 / max(n_samples - 1, 1)
        self.explained_variance_ = variance[:self.n_components]
        total = variance.sum()
        self.explained_variance_ratio = (
            self.explained_variance_ / total if total > 0 else np.zeros(self.n_components)
        )
        return self

    def transform(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        """Projects X onto the kept components."""
        if self.components_ is None:
            raise ValueError("PCA has not been fitted yet. Call fit() first.")
        if isinstance(X, pd.DataFrame):
            X = X.values
        return (np.asarray(X, dtype=np.float64) - self.mean_) @ self.components_

    def fit_transform(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        return self.fit(X).transform(X)
