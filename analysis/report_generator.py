"""
Automated Report Generator.

Turns the per-hypothesis pipeline results into the static report: CSV
tables, figures and a `report.md` that ties them together.

It generates, for each grouping hypothesis:
1. The imputation decision-table summary.
2. Elbow curve and silhouette sweeps for choosing k.
3. Per-run metrics, PCA scatter, silhouette plot and sorted size-fraction
   comparison against the hypothesis' true grouping.
4. Dendrograms of the Ward and divisive trees.
"""

import os
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional

from utils.clustering_metrics import best_k
from .visualization import (
    plot_dendrogram,
    plot_elbow,
    plot_pca_clusters,
    plot_silhouette,
    plot_silhouette_sweep,
    plot_size_distributions,
)

METRIC_COLUMNS = ["run", "algorithm", "n_clusters", "n_found_clusters", "wss",
                  "avg_silhouette", "ari", "purity", "coefficient",
                  "min_max_membership", "partition_coefficient", "degenerate", "runtime_sec"]


def save_dataframe(data: Any, folder: str, filename: str) -> Optional[str]:
    """
    Saves a list of dicts or DataFrame to CSV. Empty data is skipped.
    """
    if isinstance(data, pd.DataFrame):
        if data.empty:
            return None
        df_to_save = data
    elif not data:
        return None
    else:
        df_to_save = pd.DataFrame(data)

    os.makedirs(folder, exist_ok=True)
    path = os.path.join(folder, filename)
    df_to_save.to_csv(path, index=False)
    return path


def render_hypothesis_figures(result: Dict[str, Any], output_dir: str, config: Dict[str, Any]) -> Dict[str, str]:
    """
    Draws every figure of one hypothesis.

    Returns
    -------
    dict
        Figure key -> file name relative to `output_dir`.
    """
    name = result["name"]
    X = result["prepared"]["X"]
    y_true = result["prepared"]["y_true"]
    figures = {}

    def target(key: str) -> str:
        filename = f"{name}_{key}.png"
        figures[key] = filename
        return os.path.join(output_dir, filename)

    plot_elbow(result["elbow"], f"Elbow: k-means ({name} imputation)", target("elbow"))

    plot_silhouette_sweep(
        {"kmeans": result["silhouette_kmeans"], "ward": result["silhouette_ward"]},
        f"Average silhouette width ({name} imputation)",
        target("silhouette_sweep"),
    )

    plot_dendrogram(
        result["ward_tree"], f"Ward dendrogram ({name} imputation)", target("dendrogram_ward"),
        truncate_level=config["dendrogram_truncate_level"],
    )

    plot_pca_clusters(X, y_true, f"True {result['prepared']['group_column']} groups", target("pca_truth"))

    for run in result["runs"]:
        label = run["run"]
        labels = run["labels"]

        if run["algorithm"] == "Divisive" and f"dendrogram_divisive_k{run['n_clusters']}" not in figures:
            plot_dendrogram(
                run["linkage_matrix"], f"Divisive dendrogram ({name} imputation)",
                target(f"dendrogram_divisive_k{run['n_clusters']}"),
                truncate_level=config["dendrogram_truncate_level"],
            )

        plot_pca_clusters(X, labels, f"{label} ({name} imputation)", target(f"pca_{label}"))
        plot_size_distributions(
            result["size_comparisons"][label],
            f"Sorted cluster sizes: {label} vs true {result['prepared']['group_column']}",
            target(f"sizes_{label}"),
        )
        n_found = len(np.unique(labels))
        if 2 <= n_found <= len(labels) - 1:
            plot_silhouette(X, labels, f"Silhouette: {label}", target(f"silhouette_{label}"))

    return figures


def save_hypothesis_tables(result: Dict[str, Any], output_dir: str) -> Dict[str, Optional[str]]:
    """Writes the numeric tables of one hypothesis as CSV."""
    name = result["name"]
    tables_dir = os.path.join(output_dir, "tables")

    sizes = pd.concat(
        [df.assign(run=label) for label, df in result["size_comparisons"].items()],
        ignore_index=True,
    ) if result["size_comparisons"] else pd.DataFrame()

    return {
        "metrics": save_dataframe(result["metrics"], tables_dir, f"{name}_metrics.csv"),
        "elbow": save_dataframe(result["elbow"], tables_dir, f"{name}_elbow.csv"),
        "silhouette_kmeans": save_dataframe(result["silhouette_kmeans"], tables_dir, f"{name}_silhouette_kmeans.csv"),
        "silhouette_ward": save_dataframe(result["silhouette_ward"], tables_dir, f"{name}_silhouette_ward.csv"),
        "imputation_plan": save_dataframe(result["prepared"]["plan"], tables_dir, f"{name}_imputation_plan.csv"),
        "sizes": save_dataframe(sizes, tables_dir, f"{name}_size_distributions.csv"),
    }


def _markdown(df: pd.DataFrame, floatfmt: str = ".4f") -> str:
    if df.empty:
        return "_(empty)_"
    return df.to_markdown(index=False, floatfmt=floatfmt)


def hypothesis_section(result: Dict[str, Any], figures: Dict[str, str]) -> List[str]:
    """Markdown lines of one hypothesis."""
    name = result["name"]
    prepared = result["prepared"]
    lines = [
        f"## Hypothesis: {name} (imputed and compared by `{prepared['group_column']}`)",
        "",
        f"Sample: {prepared['X'].shape[0]} rows x {prepared['X'].shape[1]} standardized features.",
        "",
        "### Imputation",
        "",
        _markdown(result["imputation_summary"], floatfmt=".0f"),
        "",
        "### Choosing k",
        "",
        f"![elbow]({figures['elbow']})",
        "",
        _markdown(result["elbow"]),
        "",
        f"![silhouette sweep]({figures['silhouette_sweep']})",
        "",
    ]

    for engine in ("kmeans", "ward"):
        sweep = result[f"silhouette_{engine}"]
        if not sweep.empty:
            lines.append(f"- Best k by average silhouette ({engine}): {best_k(sweep)}")
    lines += ["", "### Runs", ""]

    metrics = result["metrics"]
    cols = [c for c in METRIC_COLUMNS if c in metrics.columns]
    lines += [_markdown(metrics[cols]), ""]

    lines += [
        "Size distributions are compared after sorting only; clusters are not",
        "matched to true groups, so they are not an accuracy score.",
        "",
        f"![truth]({figures['pca_truth']})",
        "",
        f"![ward dendrogram]({figures['dendrogram_ward']})",
        "",
    ]
    for key, filename in figures.items():
        if key.startswith("dendrogram_divisive"):
            lines += [f"![divisive dendrogram]({filename})", ""]

    for run in result["runs"]:
        label = run["run"]
        lines += [f"#### {label}", ""]
        for kind in ("pca", "sizes", "silhouette"):
            key = f"{kind}_{label}"
            if key in figures:
                lines.append(f"![{key}]({figures[key]})")
        lines.append("")

    return lines


def write_report(
        results: List[Dict[str, Any]],
        output_dir: str,
        config: Dict[str, Any],
        fuzzy_study: Optional[pd.DataFrame] = None,
        fuzzy_study_figure: Optional[str] = None,
) -> str:
    """
    Writes tables, figures and report.md for all hypotheses.

    Returns
    -------
    str
        Path of report.md.
    """
    os.makedirs(output_dir, exist_ok=True)
    print(f"Generating report assets in '{output_dir}/'...")

    lines = [
        "# Posture clustering report",
        "",
        f"Data: `{config['data_path']}`; seed {config['random_state']}; "
        f"sample size {config['sample_size']}.",
        "",
    ]

    for result in results:
        figures = render_hypothesis_figures(result, output_dir, config)
        save_hypothesis_tables(result, output_dir)
        lines += hypothesis_section(result, figures)

    if fuzzy_study is not None:
        save_dataframe(fuzzy_study, os.path.join(output_dir, "tables"), "fuzzy_m_study.csv")
        lines += ["## Fuzziness exponent study", "", _markdown(fuzzy_study), ""]
        if fuzzy_study_figure:
            lines += [f"![fuzzy m study]({fuzzy_study_figure})", ""]

    report_path = os.path.join(output_dir, "report.md")
    with open(report_path, "w") as f:
        f.write("\n".join(lines))
    print("  [Saved] report.md")
    return report_path
