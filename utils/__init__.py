"""
Utilities package initialization.

Exposes loading, imputation, preprocessing and evaluation functions to the
top-level utils package for cleaner imports throughout the project.
"""

from .errors import (
    PipelineError,
    LoadError,
    ImputationError,
    DegenerateInputError,
    ConvergenceWarning
)

from .loader import (
    load_postures,
    feature_columns
)

from .imputation import (
    ImputationRule,
    impute_by_group,
    plan_imputation
)

from .preprocessing import (
    Standardizer,
    sample_rows,
    standardize
)

from .clustering_metrics import (
    average_silhouette,
    cluster_size_fractions,
    compare_size_distributions,
    compute_clustering_metrics,
    elbow_sweep,
    silhouette_sweep,
    within_cluster_ss
)
