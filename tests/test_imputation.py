import numpy as np
import pandas as pd
import pandas.testing as pdt
import pytest

from utils.errors import ImputationError
from utils.imputation import (
    ImputationRule,
    choose_rule,
    impute_by_group,
    plan_imputation,
    summarize_plan,
)

FEATURES = ["X", "Y", "Z"]


def test_partial_column_filled_with_group_column_mean(two_group_table):
    out = impute_by_group(two_group_table, "subject_id", FEATURES)

    # mean of the known X values of subject 1: (1 + 3 + 5) / 3
    assert out.loc[1, "X"] == pytest.approx(3.0)
    assert out.loc[3, "X"] == pytest.approx(3.0)
    assert out.loc[[0, 2, 4], "X"].tolist() == [1.0, 3.0, 5.0]


def test_all_missing_column_uses_group_fallback_scalar(two_group_table):
    out = impute_by_group(two_group_table, "subject_id", FEATURES)

    # every known feature value of subject 2: X = 2..10, Z = 1 x 5
    expected = np.mean([2.0, 4.0, 6.0, 8.0, 10.0, 1.0, 1.0, 1.0, 1.0, 1.0])
    assert out.loc[5:9, "Y"].tolist() == pytest.approx([expected] * 5)


def test_statistics_never_cross_groups(two_group_table):
    out = impute_by_group(two_group_table, "subject_id", FEATURES)

    # subject 1 has Y values 10..14, which must not leak into subject 2
    assert out.loc[5, "Y"] == pytest.approx(3.5)


def test_no_missing_values_remain_and_shape_is_kept(two_group_table):
    out = impute_by_group(two_group_table, "subject_id", FEATURES)

    assert out.shape == two_group_table.shape
    assert not out[FEATURES].isna().any().any()
    pdt.assert_series_equal(out["subject_id"], two_group_table["subject_id"])


def test_imputation_is_idempotent(two_group_table):
    once = impute_by_group(two_group_table, "subject_id", FEATURES)
    twice = impute_by_group(once, "subject_id", FEATURES)

    pdt.assert_frame_equal(once, twice)


def test_input_is_not_modified(two_group_table):
    before = two_group_table.copy()
    impute_by_group(two_group_table, "subject_id", FEATURES)

    pdt.assert_frame_equal(two_group_table, before)


def test_row_order_preserved_with_interleaved_groups():
    df = pd.DataFrame({
        "subject_id": [2.0, 1.0, 2.0, 1.0],
        "X": [np.nan, 1.0, 4.0, np.nan],
    })
    out = impute_by_group(df, "subject_id", ["X"])

    assert out["subject_id"].tolist() == [2.0, 1.0, 2.0, 1.0]
    assert out["X"].tolist() == [4.0, 1.0, 4.0, 1.0]


def test_group_without_any_known_value_raises():
    df = pd.DataFrame({
        "subject_id": [1.0, 1.0, 2.0, 2.0],
        "X": [1.0, 2.0, np.nan, np.nan],
        "Y": [3.0, np.nan, np.nan, np.nan],
    })
    with pytest.raises(ImputationError) as excinfo:
        impute_by_group(df, "subject_id", ["X", "Y"])

    assert excinfo.value.group == 2.0


def test_missing_grouping_key_raises():
    df = pd.DataFrame({"subject_id": [1.0, np.nan], "X": [1.0, 2.0]})
    with pytest.raises(ImputationError):
        impute_by_group(df, "subject_id", ["X"])


def test_default_features_are_all_other_columns(two_group_table):
    out = impute_by_group(two_group_table, "subject_id")

    assert not out.isna().any().any()


def test_decision_table():
    assert choose_rule(0, 5) is ImputationRule.PASS_THROUGH
    assert choose_rule(2, 5) is ImputationRule.COLUMN_MEAN
    assert choose_rule(5, 5) is ImputationRule.GROUP_FALLBACK


def test_plan_lists_one_rule_per_group_and_column(two_group_table):
    plan = plan_imputation(two_group_table, "subject_id", FEATURES)

    assert len(plan) == 2 * len(FEATURES)
    rules = plan.set_index(["group", "column"])["rule"]
    assert rules[(1.0, "X")] == "column_mean"
    assert rules[(1.0, "Y")] == "pass_through"
    assert rules[(2.0, "Y")] == "group_fallback"

    summary = summarize_plan(plan).set_index("rule")
    assert summary.loc["column_mean", "cells_filled"] == 2
    assert summary.loc["group_fallback", "cells_filled"] == 5
