import os

import numpy as np
import pandas as pd
import pytest

import main
from algorithms import CLUSTERING_ENGINES, cluster
from experiments.pipeline import generate_task_list, prepare_hypothesis, run_hypothesis


def test_prepare_hypothesis_gives_complete_standardized_matrix(synthetic_postures, small_config):
    prepared = prepare_hypothesis(synthetic_postures, "subject_id", small_config)

    X = prepared["X"]
    assert X.shape == (100, 6)
    assert not np.isnan(X).any()
    np.testing.assert_allclose(X.mean(axis=0), 0.0, atol=1e-9)
    np.testing.assert_allclose(X.std(axis=0), 1.0, atol=1e-9)
    # labels follow the sampled rows
    np.testing.assert_array_equal(prepared["y_true"], prepared["sample"]["subject_id"].to_numpy())
    assert prepared["features"] == ["X0", "Y0", "Z0", "X1", "Y1", "Z1"]


def test_hypotheses_impute_independently(synthetic_postures, small_config):
    by_subject = prepare_hypothesis(synthetic_postures, "subject_id", small_config)["imputed"]
    by_gesture = prepare_hypothesis(synthetic_postures, "gesture_class", small_config)["imputed"]

    missing = synthetic_postures["X1"].isna()
    assert missing.any()
    assert not np.allclose(by_subject.loc[missing, "X1"], by_gesture.loc[missing, "X1"])
    # known cells are untouched by either branch
    pd.testing.assert_series_equal(by_subject.loc[~missing, "X1"], synthetic_postures.loc[~missing, "X1"])


def test_task_list_covers_enabled_engines(small_config):
    tasks = generate_task_list(4, small_config)

    # k=4 and k=2, four engines each with one fuzzy exponent
    assert len(tasks) == 8
    assert {t["method"] for t in tasks} == set(CLUSTERING_ENGINES)

    small_config["algorithms"]["divisive"] = False
    small_config["fuzzy_m_values"] = [1.1, 1.25]
    tasks = generate_task_list(2, small_config)
    assert [t["method"] for t in tasks] == ["kmeans", "agglomerative", "fuzzy", "fuzzy"]


def test_cluster_dispatch(three_blobs):
    X, _ = three_blobs
    for method in CLUSTERING_ENGINES:
        result = cluster(X, 3, method)
        assert len(result["labels"]) == len(X)
        assert len(np.unique(result["labels"])) == 3
        assert result["runtime_sec"] >= 0

    with pytest.raises(ValueError):
        cluster(X, 3, "dbscan")


def test_run_hypothesis(synthetic_postures, small_config):
    result = run_hypothesis(synthetic_postures, "gesture", small_config, show_progress=False)

    metrics = result["metrics"]
    assert len(metrics) == len(result["runs"]) == 8
    assert set(metrics["run"]) == set(result["size_comparisons"])
    assert "fuzzy_k3_m1.25" in set(metrics["run"])
    assert metrics["ari"].between(-1, 1).all()

    assert result["elbow"]["n_clusters"].tolist() == [1, 2, 3, 4]
    assert result["silhouette_kmeans"]["n_clusters"].tolist() == [2, 3, 4]
    assert result["silhouette_ward"]["n_clusters"].tolist() == [2, 3, 4]
    assert result["ward_tree"].shape == (99, 4)


def test_end_to_end_report(synthetic_postures, small_config):
    # raw export with the original column names and '?' for missing cells
    raw = synthetic_postures.rename(columns={"gesture_class": "Class", "subject_id": "User"})
    raw.to_csv(small_config["data_path"], index=False, na_rep="?")

    report_path = main.run(small_config, show_progress=False)

    output = small_config["output_directory"]
    assert report_path == os.path.join(output, "report.md")
    with open(report_path) as f:
        report = f.read()
    assert "## Hypothesis: subject" in report
    assert "## Hypothesis: gesture" in report
    assert "## Fuzziness exponent study" in report

    assert os.path.exists(os.path.join(output, "fuzzy_m_impact.png"))
    assert os.path.exists(os.path.join(output, "subject_elbow.png"))
    assert os.path.exists(os.path.join(output, "tables", "gesture_metrics.csv"))


def test_command_line_overrides():
    args = main.parse_args(["--data", "x.csv", "--seed", "3", "--sample-size", "50", "--no-progress"])
    config = main.build_config(args)

    assert config["data_path"] == "x.csv"
    assert config["random_state"] == 3
    assert config["sample_size"] == 50
    assert args.no_progress
    # defaults are not mutated
    assert main.RUN_CONFIG["random_state"] == 42


def test_hierarchical_trees_are_built_once_per_hypothesis(synthetic_postures, small_config):
    result = run_hypothesis(synthetic_postures, "gesture", small_config, show_progress=False)

    divisive = [run for run in result["runs"] if run["algorithm"] == "Divisive"]
    ward = [run for run in result["runs"] if run["algorithm"] == "Agglomerative"]

    assert [run["n_clusters"] for run in divisive] == [3, 2]
    assert divisive[1]["linkage_matrix"] is divisive[0]["linkage_matrix"]
    assert all(run["linkage_matrix"] is result["ward_tree"] for run in ward)
