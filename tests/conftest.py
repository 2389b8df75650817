import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_blobs


@pytest.fixture
def two_group_table():
    """
    10 rows, 2 subjects of 5. Subject 1 misses 2 of 5 X values; subject 2
    misses every Y value.
    """
    nan = np.nan
    return pd.DataFrame({
        "subject_id": [1.0] * 5 + [2.0] * 5,
        "X": [1.0, nan, 3.0, nan, 5.0, 2.0, 4.0, 6.0, 8.0, 10.0],
        "Y": [10.0, 11.0, 12.0, 13.0, 14.0, nan, nan, nan, nan, nan],
        "Z": [0.5, 0.5, 0.5, 0.5, 0.5, 1.0, 1.0, 1.0, 1.0, 1.0],
    })


@pytest.fixture
def three_blobs():
    """Three well separated, equally sized Euclidean clusters."""
    X, y = make_blobs(
        n_samples=[50, 50, 50],
        centers=[[0.0, 0.0], [12.0, 12.0], [24.0, 0.0]],
        cluster_std=0.6,
        random_state=0,
    )
    return X, y


@pytest.fixture
def synthetic_postures():
    """
    Small stand-in for the posture table: 3 gestures x 4 subjects, 6
    coordinates, with scattered missing cells.
    """
    rng = np.random.RandomState(7)
    n_per_cell = 10
    rows = []
    for gesture in (1.0, 2.0, 3.0):
        for subject in (0.0, 1.0, 2.0, 3.0):
            center = rng.uniform(-50, 50, size=6) + gesture * 20
            for _ in range(n_per_cell):
                rows.append([gesture, subject] + list(center + rng.normal(scale=3.0, size=6)))

    columns = ["gesture_class", "subject_id", "X0", "Y0", "Z0", "X1", "Y1", "Z1"]
    df = pd.DataFrame(rows, columns=columns)

    features = columns[2:]
    mask = rng.rand(len(df), len(features)) < 0.1
    # every row keeps at least 3 coordinates
    mask[:, :3] = False
    values = df[features].to_numpy()
    values[mask] = np.nan
    df[features] = values
    return df


@pytest.fixture
def small_config(tmp_path):
    return {
        "data_path": str(tmp_path / "postures.csv"),
        "output_directory": str(tmp_path / "report"),
        "missing_values": ["", "NA", ".", "?"],
        "column_aliases": {"Class": "gesture_class", "User": "subject_id"},
        "class_column": "gesture_class",
        "subject_column": "subject_id",
        "random_state": 0,
        "sample_size": 100,
        "zero_variance_policy": "raise",
        "hypotheses": {
            "subject": {"group_column": "subject_id", "n_clusters": 4},
            "gesture": {"group_column": "gesture_class", "n_clusters": 3},
        },
        "extra_cluster_counts": [2],
        "k_sweep": [1, 2, 3, 4],
        "kmeans_n_init": 3,
        "kmeans_init": "k-means++",
        "algorithms": {"kmeans": True, "agglomerative": True, "divisive": True, "fuzzy": True},
        "linkage": "ward",
        "divisive_standardize": False,
        "fuzzy_m_values": [1.25],
        "fuzzy_m_study_values": [1.1, 1.5],
        "dendrogram_truncate_level": 3,
    }
