import os

import numpy as np

from algorithms.agg_clustering import build_merge_tree
from algorithms.divisive import DivisiveClustering
from analysis.fuzzy_m_study import plot_study, run_study
from analysis.visualization import (
    plot_dendrogram,
    plot_elbow,
    plot_pca_clusters,
    plot_silhouette,
    plot_silhouette_sweep,
    plot_size_distributions,
)
from utils.clustering_metrics import compare_size_distributions, elbow_sweep, silhouette_sweep


def test_cluster_plots_are_written(tmp_path, three_blobs):
    X, y = three_blobs

    paths = [
        plot_pca_clusters(X, y, "truth", str(tmp_path / "pca.png")),
        plot_silhouette(X, y, "silhouette", str(tmp_path / "sil.png")),
        plot_size_distributions(
            compare_size_distributions(np.zeros(len(y), dtype=int), y), "sizes", str(tmp_path / "sizes.png")
        ),
    ]
    for path in paths:
        assert os.path.getsize(path) > 0


def test_dendrograms_of_both_hierarchical_engines(tmp_path, three_blobs):
    X, _ = three_blobs

    ward = plot_dendrogram(build_merge_tree(X), "ward", str(tmp_path / "ward.png"), truncate_level=3)
    diana = plot_dendrogram(
        DivisiveClustering().fit(X).linkage_matrix_, "diana", str(tmp_path / "nested" / "diana.png")
    )

    assert os.path.exists(ward)
    assert os.path.exists(diana)


def test_sweep_plots_are_written(tmp_path, three_blobs):
    X, _ = three_blobs
    elbow = elbow_sweep(X, [1, 2, 3], random_state=0, n_init=2)
    sweep = silhouette_sweep(X, [2, 3], random_state=0)

    assert os.path.exists(plot_elbow(elbow, "elbow", str(tmp_path / "elbow.png")))
    assert os.path.exists(plot_silhouette_sweep({"kmeans": sweep}, "sweep", str(tmp_path / "sweep.png")))


def test_fuzzy_study_plot(tmp_path, three_blobs):
    X, _ = three_blobs
    study = run_study(X, 3, [1.25, 2.0], random_state=0)

    path = plot_study(study, "m", str(tmp_path / "study" / "fuzzy.png"))
    assert os.path.getsize(path) > 0
