"""
Sampling and standardization of the imputed posture table.

The full dataset holds tens of thousands of frames, which is too many for
hierarchical clustering and silhouette computations, so the analysis works on
a seeded uniform subsample that is then z-scored column by column.
"""

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler
from typing import List, Optional, Union

from .errors import DegenerateInputError

ZERO_VARIANCE_POLICIES = ("raise", "zero")


def sample_rows(df: pd.DataFrame, n_samples: int, random_state: Optional[int] = None) -> pd.DataFrame:
    """
    Draws `n_samples` rows uniformly at random without replacement.

    Parameters
    ----------
    df : pd.DataFrame
        Source table.
    n_samples : int
        Exact number of rows to return.
    random_state : int, optional
        Seed for reproducibility.

    Returns
    -------
    pd.DataFrame
        The sampled rows with their original index labels.
    """
    n_rows = len(df)
    if n_samples < 0:
        raise DegenerateInputError(f"Sample size must be non-negative, got {n_samples}")
    if n_samples > n_rows:
        raise DegenerateInputError(
            f"Requested sample of {n_samples} rows but the table only has {n_rows}"
        )

    return df.sample(n=n_samples, replace=False, random_state=random_state)


class Standardizer:
    """
    Per-column z-score normalization: (x - mean) / std.

    Statistics come from the matrix passed to `fit` only. Standard deviation
    is the population one (ddof=0), as in sklearn's StandardScaler.

    Parameters
    ----------
    zero_variance : {'raise', 'zero'}, default='raise'
        What to do with a column whose standard deviation is zero.
        - 'raise': DegenerateInputError naming the columns.
        - 'zero': the column becomes all zeros.
    """

    def __init__(self, zero_variance: str = "raise"):
        if zero_variance not in ZERO_VARIANCE_POLICIES:
            raise ValueError(f"zero_variance must be one of {ZERO_VARIANCE_POLICIES}, got '{zero_variance}'")
        self.zero_variance = zero_variance
        self.scaler = None
        self.mean_ = None
        self.scale_ = None
        self.zero_variance_columns_ = None
        self.zero_variance_indices_ = None
        self.feature_names_ = None

    def fit(self, X: Union[np.ndarray, pd.DataFrame]):
        """
        Computes column means and standard deviations.

        Raises
        ------
        DegenerateInputError
            For an empty matrix, NaN values, or (policy 'raise') zero-variance
            columns.
        """
        if isinstance(X, pd.DataFrame):
            self.feature_names_ = [str(c) for c in X.columns]
            X = X.values
        X = np.asarray(X, dtype=np.float64)

        if X.ndim != 2 or X.shape[0] == 0:
            raise DegenerateInputError(f"Cannot standardize a matrix of shape {X.shape}")
        if np.isnan(X).any():
            raise DegenerateInputError("Cannot standardize a matrix with missing values; impute first")

        self.scaler = StandardScaler()
        self.scaler.fit(X)
        self.mean_ = self.scaler.mean_

        # Columns StandardScaler treats as constant keep a scale of 1 while
        # their variance is not 1; this includes near-constant columns whose
        # variance is lost in rounding.
        zero_cols = np.flatnonzero(
            (np.ptp(X, axis=0) == 0) | ((self.scaler.scale_ == 1.0) & (self.scaler.var_ != 1.0))
        )
        self.zero_variance_columns_ = self._column_names(zero_cols)
        self.zero_variance_indices_ = zero_cols

        if len(zero_cols) > 0 and self.zero_variance == "raise":
            raise DegenerateInputError(
                f"Zero-variance columns cannot be standardized: {self.zero_variance_columns_}"
            )

        self.scale_ = self.scaler.scale_
        return self

    def transform(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        if self.scaler is None:
            raise ValueError("Standardizer has not been fitted yet. Call fit() first.")
        if isinstance(X, pd.DataFrame):
            X = X.values
        Z = self.scaler.transform(np.asarray(X, dtype=np.float64))
        Z[:, self.zero_variance_indices_] = 0.0
        return Z

    def fit_transform(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        self.fit(X)
        return self.transform(X)

    def _column_names(self, indices: np.ndarray) -> List[str]:
        if self.feature_names_ is not None:
            return [self.feature_names_[i] for i in indices]
        return [str(i) for i in indices]


def standardize(X: Union[np.ndarray, pd.DataFrame], zero_variance: str = "raise") -> np.ndarray:
    """Shortcut for ``Standardizer(zero_variance).fit_transform(X)``."""
    return Standardizer(zero_variance=zero_variance).fit_transform(X)
