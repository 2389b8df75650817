"""
Per-hypothesis analysis pipeline.

For one grouping hypothesis (subject or gesture) this runs, in order:
impute by group -> sample -> standardize -> cluster with every enabled
engine -> evaluate. The two hypotheses are imputed independently and never
merged.
"""

import time
import pandas as pd
from tqdm import tqdm
from typing import Any, Dict, List

from algorithms import cluster
from algorithms.agg_clustering import build_merge_tree
from algorithms.hierarchy import cut_dendrogram
from utils.clustering_metrics import (
    compare_size_distributions,
    compute_clustering_metrics,
    elbow_sweep,
    silhouette_sweep,
)
from utils.imputation import impute_by_group, plan_imputation, summarize_plan
from utils.loader import feature_columns
from utils.preprocessing import Standardizer, sample_rows


HIERARCHICAL_METHODS = ("agglomerative", "divisive")


def prepare_hypothesis(df: pd.DataFrame, group_column: str, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Imputes, samples and standardizes the table for one grouping key.

    Returns
    -------
    dict
        'group_column', 'features', 'plan', 'imputed', 'sample', 'X',
        'standardizer', 'y_subject', 'y_gesture', 'y_true'.
    """
    grouping = (config["class_column"], config["subject_column"])
    features = feature_columns(df, grouping)

    plan = plan_imputation(df, group_column, features)
    imputed = impute_by_group(df, group_column, features)

    sample = sample_rows(imputed, config["sample_size"], random_state=config["random_state"])

    standardizer = Standardizer(zero_variance=config["zero_variance_policy"])
    X = standardizer.fit_transform(sample[features])

    return {
        "group_column": group_column,
        "features": features,
        "plan": plan,
        "imputed": imputed,
        "sample": sample,
        "X": X,
        "standardizer": standardizer,
        "y_subject": sample[config["subject_column"]].to_numpy(),
        "y_gesture": sample[config["class_column"]].to_numpy(),
        "y_true": sample[group_column].to_numpy(),
    }


def generate_task_list(n_clusters: int, config: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Builds the engine runs for one hypothesis: the hypothesis' own cluster
    count plus the extra counts.
    """
    cluster_counts = [n_clusters] + [k for k in config["extra_cluster_counts"] if k != n_clusters]
    enabled = config["algorithms"]
    seed = config["random_state"]

    tasks = []
    for k in cluster_counts:
        if enabled.get("kmeans"):
            tasks.append({
                "method": "kmeans", "n_clusters": k,
                "params": {
                    "random_state": seed,
                    "n_init": config["kmeans_n_init"],
                    "init": config["kmeans_init"],
                },
            })
        if enabled.get("agglomerative"):
            tasks.append({
                "method": "agglomerative", "n_clusters": k,
                "params": {"linkage": config["linkage"]},
            })
        if enabled.get("divisive"):
            tasks.append({
                "method": "divisive", "n_clusters": k,
                "params": {"standardize": config["divisive_standardize"]},
            })
        if enabled.get("fuzzy"):
            for m in config["fuzzy_m_values"]:
                tasks.append({
                    "method": "fuzzy", "n_clusters": k,
                    "params": {"m": m, "random_state": seed},
                })
    return tasks


def run_hypothesis(
        df: pd.DataFrame,
        name: str,
        config: Dict[str, Any],
        show_progress: bool = True,
) -> Dict[str, Any]:
    """
    Runs the complete analysis branch for one grouping hypothesis.

    Parameters
    ----------
    df : pd.DataFrame
        Loaded (not imputed) table.
    name : str
        Key in config['hypotheses'].
    config : dict
        Run configuration (see experiments.config.RUN_CONFIG).
    show_progress : bool, default=True
        Display tqdm bars.

    Returns
    -------
    dict
        'name', 'prepared', 'runs' (engine results with labels),
        'metrics' (DataFrame, one row per run), 'imputation_summary',
        'elbow', 'silhouette_kmeans', 'silhouette_ward', 'size_comparisons',
        'ward_tree'.
    """
    hypothesis = config["hypotheses"][name]
    group_column = hypothesis["group_column"]

    print(f"--- Hypothesis '{name}' (grouped by {group_column}) ---")
    prepared = prepare_hypothesis(df, group_column, config)
    X, y_true = prepared["X"], prepared["y_true"]
    print(f"  Sampled {X.shape[0]} rows x {X.shape[1]} features")

    runs = []
    metrics = []
    size_comparisons = {}
    tasks = generate_task_list(hypothesis["n_clusters"], config)

    # Hierarchical trees do not depend on k: built on the first run, re-cut after
    trees = {}

    pbar = tqdm(tasks, unit="run", disable=not show_progress)
    for task in pbar:
        label = f"{task['method']}_k{task['n_clusters']}"
        if "m" in task["params"]:
            label += f"_m{task['params']['m']}"
        pbar.set_description(f"{name} | {label:<24}")

        params = dict(task["params"])
        if task["method"] in trees:
            params["linkage_matrix"] = trees[task["method"]]

        result = cluster(X, task["n_clusters"], task["method"], **params)
        if task["method"] in HIERARCHICAL_METHODS:
            trees[task["method"]] = result["linkage_matrix"]
        result["run"] = label
        runs.append(result)

        row = {
            "hypothesis": name,
            "run": label,
            "algorithm": result["algorithm"],
            "n_clusters": task["n_clusters"],
            "runtime_sec": result["runtime_sec"],
        }
        for key in ("param_m", "linkage", "coefficient", "min_max_membership",
                    "partition_coefficient", "degenerate"):
            if key in result:
                row[key] = result[key]

        row.update(compute_clustering_metrics(X, y_true, result["labels"]))
        metrics.append(row)

        size_comparisons[label] = compare_size_distributions(result["labels"], y_true)

        if result.get("degenerate"):
            pbar.write(f"  [Warning] {label} converged to complete fuzziness")

    k_sweep = config["k_sweep"]
    start = time.perf_counter()
    elbow = elbow_sweep(
        X, k_sweep,
        random_state=config["random_state"],
        n_init=config["kmeans_n_init"],
        show_progress=show_progress,
    )

    silhouette_k = [k for k in k_sweep if 2 <= k <= X.shape[0] - 1]
    silhouette_kmeans = silhouette_sweep(
        X, silhouette_k, random_state=config["random_state"], show_progress=show_progress
    )

    # One Ward tree serves every cut
    ward_tree = trees.get("agglomerative")
    if ward_tree is None:
        ward_tree = build_merge_tree(X, linkage=config["linkage"])
    silhouette_ward = silhouette_sweep(
        X, silhouette_k,
        labeller=lambda data, k: cut_dendrogram(ward_tree, n_clusters=k),
        show_progress=show_progress,
    )
    print(f"  Sweeps done in {time.perf_counter() - start:.2f}s")

    return {
        "name": name,
        "prepared": prepared,
        "runs": runs,
        "metrics": pd.DataFrame(metrics),
        "imputation_summary": summarize_plan(prepared["plan"]),
        "elbow": elbow,
        "silhouette_kmeans": silhouette_kmeans,
        "silhouette_ward": silhouette_ward,
        "size_comparisons": size_comparisons,
        "ward_tree": ward_tree,
    }
