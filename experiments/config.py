"""
Run configuration for the posture clustering report.

Every constant of the analysis lives here; `main.py` can override the most
common ones from the command line.
"""

# ---------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------
RUN_CONFIG = {
    "data_path": "datasets/postures.csv",
    "output_directory": "report_assets",

    # Loader
    "missing_values": ["", "NA", ".", "?"],
    "column_aliases": {"Class": "gesture_class", "User": "subject_id"},
    "class_column": "gesture_class",
    "subject_column": "subject_id",

    # Sampling / standardization
    "random_state": 42,
    "sample_size": 2000,
    "zero_variance_policy": "raise",  # or "zero"

    # Grouping hypotheses: each gets its own imputation and cluster count
    "hypotheses": {
        "subject": {"group_column": "subject_id", "n_clusters": 14},
        "gesture": {"group_column": "gesture_class", "n_clusters": 5},
    },
    "extra_cluster_counts": [3],

    # Sweeps
    "k_sweep": list(range(1, 16)),
    "kmeans_n_init": 10,
    "kmeans_init": "k-means++",  # or "random"

    # Engines
    "algorithms": {
        "kmeans": True,
        "agglomerative": True,
        "divisive": True,
        "fuzzy": True,
    },
    "linkage": "ward",
    "divisive_standardize": False,
    "fuzzy_m_values": [1.25, 1.1],
    "fuzzy_m_study_values": [1.05, 1.1, 1.25, 1.5, 2.0, 3.0],

    # Report
    "dendrogram_truncate_level": 6,
}
