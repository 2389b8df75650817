"""
Grouped mean imputation.

Missing coordinates are filled using statistics of the row's own group
(subject or gesture). For every (group, column) pair one rule is chosen from
an explicit decision table:

- PASS_THROUGH   : no missing value in that column of that group.
- COLUMN_MEAN    : some values missing; fill with the group's column mean.
- GROUP_FALLBACK : the column is entirely missing in the group; fill with the
                   group's overall mean, i.e. the mean of every known feature
                   value of the group (one scalar per group).

A group with no known feature value at all cannot produce a fallback and
raises ImputationError.

Results are written into an output buffer aligned with the input, so the
original row order is kept whatever the group iteration order is.
"""

from enum import Enum
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .errors import ImputationError


class ImputationRule(Enum):
    PASS_THROUGH = "pass_through"
    COLUMN_MEAN = "column_mean"
    GROUP_FALLBACK = "group_fallback"


def choose_rule(n_missing: int, n_rows: int) -> ImputationRule:
    """Decision table for one (group, column) pair."""
    if n_missing == 0:
        return ImputationRule.PASS_THROUGH
    if n_missing == n_rows:
        return ImputationRule.GROUP_FALLBACK
    return ImputationRule.COLUMN_MEAN


def _check_columns(df: pd.DataFrame, group_column: str, feature_cols: List[str]):
    missing_cols = [c for c in [group_column] + list(feature_cols) if c not in df.columns]
    if missing_cols:
        raise ImputationError(f"Unknown columns: {missing_cols}")

    if group_column in feature_cols:
        raise ImputationError(f"Grouping column '{group_column}' cannot also be a feature")

    if df[group_column].isna().any():
        row = int(np.flatnonzero(df[group_column].isna().to_numpy())[0])
        raise ImputationError(
            f"Grouping column '{group_column}' has a missing value at row {row + 1}"
        )


def _group_positions(df: pd.DataFrame, group_column: str) -> Dict[object, np.ndarray]:
    # Sorted keys give a deterministic iteration order
    return {
        key: np.asarray(positions)
        for key, positions in sorted(df.groupby(group_column, sort=True).indices.items())
    }


def plan_imputation(
        df: pd.DataFrame,
        group_column: str,
        feature_cols: List[str]
) -> pd.DataFrame:
    """
    Builds the decision table without touching the data.

    Parameters
    ----------
    df : pd.DataFrame
        Input table.
    group_column : str
        Grouping key (e.g. 'subject_id').
    feature_cols : list of str
        Columns to impute.

    Returns
    -------
    pd.DataFrame
        One row per (group, column) with the number of missing cells and the
        selected rule.
    """
    _check_columns(df, group_column, feature_cols)

    values = df[feature_cols].to_numpy(dtype=np.float64)
    records = []
    for key, positions in _group_positions(df, group_column).items():
        block_missing = np.isnan(values[positions])
        n_rows = len(positions)
        for j, col in enumerate(feature_cols):
            n_missing = int(block_missing[:, j].sum())
            records.append({
                "group": key,
                "column": col,
                "n_rows": n_rows,
                "n_missing": n_missing,
                "rule": choose_rule(n_missing, n_rows).value,
            })

    return pd.DataFrame(records, columns=["group", "column", "n_rows", "n_missing", "rule"])


def impute_by_group(
        df: pd.DataFrame,
        group_column: str,
        feature_cols: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Fills every missing feature value with a statistic of its own group.

    Parameters
    ----------
    df : pd.DataFrame
        Input table. It is not modified.
    group_column : str
        Grouping key column.
    feature_cols : list of str, optional
        Columns to impute. Defaults to every column except `group_column`.
        Columns not listed are passed through unchanged.

    Returns
    -------
    pd.DataFrame
        Same shape, index and row order as `df`, with no NaN left in the
        feature columns.

    Raises
    ------
    ImputationError
        If a group has no known value in any feature column, or the grouping
        key itself is missing.
    """
    if feature_cols is None:
        feature_cols = [c for c in df.columns if c != group_column]
    feature_cols = list(feature_cols)

    _check_columns(df, group_column, feature_cols)

    values = df[feature_cols].to_numpy(dtype=np.float64)
    output = values.copy()

    for key, positions in _group_positions(df, group_column).items():
        block = values[positions]
        missing = np.isnan(block)

        if not missing.any():
            continue

        n_rows = block.shape[0]
        n_missing = missing.sum(axis=0)
        filled = block.copy()
        fallback = None

        for j in range(block.shape[1]):
            rule = choose_rule(int(n_missing[j]), n_rows)

            if rule is ImputationRule.PASS_THROUGH:
                continue

            if rule is ImputationRule.COLUMN_MEAN:
                fill_value = block[~missing[:, j], j].mean()
            else:
                if fallback is None:
                    known = block[~missing]
                    if known.size == 0:
                        raise ImputationError(
                            f"Group {key!r} of '{group_column}' has no known feature value; "
                            f"cannot compute a fallback mean",
                            group=key,
                        )
                    fallback = known.mean()
                fill_value = fallback

            filled[missing[:, j], j] = fill_value

        output[positions] = filled

    result = df.copy()
    result[feature_cols] = output
    return result


def summarize_plan(plan: pd.DataFrame) -> pd.DataFrame:
    """Counts (group, column) pairs and filled cells per rule."""
    if plan.empty:
        return pd.DataFrame(columns=["rule", "pairs", "cells_filled"])

    summary = plan.groupby("rule").agg(
        pairs=("column", "size"),
        cells_filled=("n_missing", "sum"),
    ).reset_index()
    return summary
