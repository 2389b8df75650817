"""
Fuzziness Exponent Study (Impact of m).

Runs Fuzzy C-Means over a range of m on one standardized matrix and records
how close the solution gets to complete fuzziness. The minimum over rows of
the maximum membership drops towards 1/k as m grows; the normalized
partition coefficient drops towards 0.

Usage:
    Run from project root: python -m analysis.fuzzy_m_study
"""

import os
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from typing import Iterable, Optional

from algorithms.fuzzy_c_means import FuzzyCMeans
from .visualization import save_figure


def run_study(
        X,
        n_clusters: int,
        m_values: Iterable[float],
        random_state: Optional[int] = None,
) -> pd.DataFrame:
    """
    Fits one FCM per m.

    Degenerate fits still emit their ConvergenceWarning and are flagged in
    the 'degenerate' column.

    Returns
    -------
    pd.DataFrame
        Columns 'param_m', 'n_clusters', 'min_max_membership',
        'partition_coefficient', 'normalized_partition_coefficient',
        'n_crisp_clusters', 'degenerate', 'n_iter'.
    """
    records = []
    for m in m_values:
        model = FuzzyCMeans(n_clusters=n_clusters, m=m, random_state=random_state).fit(X)

        records.append({
            "param_m": m,
            "n_clusters": n_clusters,
            "min_max_membership": model.min_max_membership_,
            "partition_coefficient": model.partition_coefficient_,
            "normalized_partition_coefficient": model.normalized_partition_coefficient_,
            "n_crisp_clusters": model.n_crisp_clusters_,
            "degenerate": model.is_degenerate_,
            "n_iter": model.n_iter_,
        })
    return pd.DataFrame(records)


def plot_study(study: pd.DataFrame, title: str, path: str) -> str:
    """
    Plots both degeneracy diagnostics against m, with 1/k as reference.
    """
    k = int(study["n_clusters"].iloc[0])
    long_df = study.melt(
        id_vars="param_m",
        value_vars=["min_max_membership", "normalized_partition_coefficient"],
        var_name="diagnostic", value_name="value",
    )

    fig, ax = plt.subplots(figsize=(8, 5))
    sns.lineplot(data=long_df, x="param_m", y="value", hue="diagnostic", marker="o", ax=ax)
    ax.axhline(1.0 / k, color="grey", linestyle=":", label="1/k")
    ax.set_xlabel("Fuzziness exponent (m)")
    ax.set_ylabel("Value")
    ax.set_title(title)
    ax.grid(True, linestyle="--", alpha=0.5)
    ax.legend()
    return save_figure(fig, path)


if __name__ == "__main__":
    from experiments.config import RUN_CONFIG
    from experiments.pipeline import prepare_hypothesis
    from utils.loader import load_postures

    df = load_postures(
        RUN_CONFIG["data_path"],
        missing_values=RUN_CONFIG["missing_values"],
        column_aliases=RUN_CONFIG["column_aliases"],
    )
    hypothesis = RUN_CONFIG["hypotheses"]["subject"]
    prepared = prepare_hypothesis(df, hypothesis["group_column"], RUN_CONFIG)
    study = run_study(
        prepared["X"], hypothesis["n_clusters"],
        RUN_CONFIG["fuzzy_m_study_values"], RUN_CONFIG["random_state"]
    )
    print(study.to_string(index=False))
    plot_study(study, "Impact of m on fuzzy memberships",
               os.path.join(RUN_CONFIG["output_directory"], "fuzzy_m_impact.png"))
