"""
Report figures for the posture clustering analysis.

Every function draws one figure, saves it under the given path and returns
that path, so the report generator can link it.
"""

import os
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy.cluster.hierarchy import dendrogram
from typing import Dict

from algorithms.pca import PCA
from utils.clustering_metrics import silhouette_values


def save_figure(fig, path: str) -> str:
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    print(f"  [Saved] {os.path.basename(path)}")
    return path


def plot_pca_clusters(X: np.ndarray, labels: np.ndarray, title: str, path: str) -> str:
    """
    Scatter of the first two principal components, coloured by cluster.
    """
    pca = PCA(n_components=2)
    X_pca = pca.fit_transform(X)

    df_plot = pd.DataFrame(X_pca, columns=["PC1", "PC2"])
    df_plot["cluster"] = pd.Series(labels).astype(str).to_numpy()

    n_colors = df_plot["cluster"].nunique()
    palette = "tab20" if n_colors > 10 else "tab10"

    fig, ax = plt.subplots(figsize=(9, 7))
    sns.scatterplot(
        data=df_plot, x="PC1", y="PC2", hue="cluster",
        palette=palette, s=12, alpha=0.6, ax=ax, legend="full"
    )
    ratio = pca.explained_variance_ratio
    ax.set_xlabel(f"PC1 ({ratio[0]:.1%} var.)")
    ax.set_ylabel(f"PC2 ({ratio[1]:.1%} var.)")
    ax.set_title(title)
    ax.grid(True, linestyle="--", alpha=0.3)
    ax.legend(bbox_to_anchor=(1.02, 1), loc="upper left", title="Cluster", fontsize="small")
    return save_figure(fig, path)


def plot_size_distributions(comparison: pd.DataFrame, title: str, path: str) -> str:
    """
    Bar chart of sorted cluster-size fractions, predicted next to true.

    Parameters
    ----------
    comparison : pd.DataFrame
        Output of `compare_size_distributions` ('rank', 'predicted', 'true').
    """
    long_df = comparison.melt(
        id_vars="rank", value_vars=["predicted", "true"],
        var_name="assignment", value_name="fraction"
    )

    fig, ax = plt.subplots(figsize=(10, 5))
    sns.barplot(data=long_df, x="rank", y="fraction", hue="assignment", ax=ax)
    ax.set_xlabel("Cluster (sorted by size)")
    ax.set_ylabel("Fraction of rows")
    ax.set_title(title)
    ax.grid(True, axis="y", linestyle="--", alpha=0.3)
    return save_figure(fig, path)


def plot_silhouette(X: np.ndarray, labels: np.ndarray, title: str, path: str) -> str:
    """
    Classic silhouette plot: per-row widths, grouped by cluster and sorted.
    """
    labels = np.asarray(labels)
    values = silhouette_values(X, labels)
    average = values.mean()
    clusters = np.unique(labels)
    colors = sns.color_palette("tab20" if len(clusters) > 10 else "tab10", len(clusters))

    fig, ax = plt.subplots(figsize=(8, 7))
    y_lower = 10
    for color, k in zip(colors, clusters):
        cluster_values = np.sort(values[labels == k])
        y_upper = y_lower + len(cluster_values)
        ax.fill_betweenx(np.arange(y_lower, y_upper), 0, cluster_values, facecolor=color, alpha=0.8)
        ax.text(-0.05, y_lower + 0.5 * len(cluster_values), str(k), fontsize="small")
        y_lower = y_upper + 10

    ax.axvline(x=average, color="red", linestyle="--", label=f"average = {average:.3f}")
    ax.set_xlabel("Silhouette width")
    ax.set_ylabel("Cluster")
    ax.set_yticks([])
    ax.set_title(title)
    ax.legend(loc="lower right")
    return save_figure(fig, path)


def plot_dendrogram(Z: np.ndarray, title: str, path: str, truncate_level: int = 6) -> str:
    """Dendrogram of a merge tree, truncated to the top levels."""
    fig, ax = plt.subplots(figsize=(12, 6))
    dendrogram(Z, ax=ax, truncate_mode="level", p=truncate_level, no_labels=True, color_threshold=None)
    ax.set_ylabel("Height")
    ax.set_title(title)
    return save_figure(fig, path)


def plot_elbow(elbow: pd.DataFrame, title: str, path: str) -> str:
    """Within-cluster sum of squares against k."""
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.lineplot(data=elbow, x="n_clusters", y="wss", marker="o", ax=ax)
    ax.set_xlabel("Number of clusters (k)")
    ax.set_ylabel("Within-cluster sum of squares")
    ax.set_title(title)
    ax.grid(True, linestyle="--", alpha=0.3)
    return save_figure(fig, path)


def plot_silhouette_sweep(sweeps: Dict[str, pd.DataFrame], title: str, path: str) -> str:
    """Average silhouette width against k, one line per engine."""
    frames = [sweep.assign(engine=engine) for engine, sweep in sweeps.items()]
    data = pd.concat(frames, ignore_index=True)

    fig, ax = plt.subplots(figsize=(8, 5))
    sns.lineplot(data=data, x="n_clusters", y="avg_silhouette", hue="engine", marker="o", ax=ax)
    ax.set_xlabel("Number of clusters (k)")
    ax.set_ylabel("Average silhouette width")
    ax.set_title(title)
    ax.grid(True, linestyle="--", alpha=0.3)
    return save_figure(fig, path)
