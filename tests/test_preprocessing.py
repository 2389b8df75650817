import numpy as np
import pandas as pd
import pytest

from utils.errors import DegenerateInputError
from utils.preprocessing import Standardizer, sample_rows, standardize


@pytest.fixture
def table():
    return pd.DataFrame({"a": np.arange(20, dtype=float), "b": np.arange(20, dtype=float) ** 2})


def test_sample_has_exact_size_without_replacement(table):
    sample = sample_rows(table, 7, random_state=3)

    assert len(sample) == 7
    assert sample.index.is_unique


def test_sample_is_reproducible(table):
    first = sample_rows(table, 5, random_state=11)
    second = sample_rows(table, 5, random_state=11)

    assert first.index.tolist() == second.index.tolist()


def test_sample_of_full_size_returns_every_row_once(table):
    sample = sample_rows(table, len(table), random_state=0)

    assert sorted(sample.index.tolist()) == list(range(len(table)))


def test_oversized_sample_fails(table):
    with pytest.raises(DegenerateInputError):
        sample_rows(table, len(table) + 1, random_state=0)


def test_standardized_columns_have_zero_mean_unit_std():
    rng = np.random.RandomState(0)
    X = rng.normal(loc=[5.0, -3.0, 100.0], scale=[2.0, 0.1, 30.0], size=(200, 3))

    Z = standardize(X)

    np.testing.assert_allclose(Z.mean(axis=0), 0.0, atol=1e-10)
    np.testing.assert_allclose(Z.std(axis=0), 1.0, atol=1e-10)


def test_statistics_come_from_the_given_matrix_only():
    X = np.array([[1.0, 10.0], [3.0, 30.0]])
    scaler = Standardizer().fit(X)

    np.testing.assert_allclose(scaler.mean_, [2.0, 20.0])
    np.testing.assert_allclose(scaler.transform(X), [[-1.0, -1.0], [1.0, 1.0]])


def test_zero_variance_raises_by_default():
    X = pd.DataFrame({"moving": [1.0, 2.0, 3.0], "constant": [4.0, 4.0, 4.0]})

    with pytest.raises(DegenerateInputError, match="constant"):
        Standardizer().fit(X)


def test_zero_variance_maps_to_zero_when_asked():
    X = np.array([[1.0, 4.0], [2.0, 4.0], [3.0, 4.0]])
    scaler = Standardizer(zero_variance="zero")
    Z = scaler.fit_transform(X)

    assert scaler.zero_variance_columns_ == ["1"]
    np.testing.assert_array_equal(Z[:, 1], 0.0)
    np.testing.assert_allclose(Z[:, 0].std(), 1.0)


def test_missing_values_are_rejected():
    with pytest.raises(DegenerateInputError):
        standardize(np.array([[1.0, np.nan], [2.0, 3.0]]))


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        Standardizer(zero_variance="drop")


def test_numerically_constant_column_counts_as_zero_variance():
    # range is one ulp, variance vanishes against the column mean
    X = pd.DataFrame({"moving": [1.0, 2.0, 3.0], "flat": [1e8, 1e8 + 1.5e-8, 1e8]})

    with pytest.raises(DegenerateInputError, match="flat"):
        Standardizer().fit(X)

    scaler = Standardizer(zero_variance="zero")
    Z = scaler.fit_transform(X)
    assert scaler.zero_variance_columns_ == ["flat"]
    np.testing.assert_allclose(Z[:, 0].std(), 1.0)
    np.testing.assert_array_equal(Z[:, 1], 0.0)
