"""Tests for z-score normalization and stored normalization parameters."""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st
from hypothesis.extra.numpy import arrays

from weatherml.features.normalization import EPSILON, NormalizationParameters, Normalizer


batches = st.tuples(
    st.integers(min_value=1, max_value=30),
    st.integers(min_value=1, max_value=12),
).flatmap(
    lambda shape: arrays(
        dtype=np.float64,
        shape=shape,
        elements=st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False),
    )
)


def test_fit_standardizes_columns():
    batch = np.array([[1.0, 10.0], [2.0, 20.0], [3.0, 30.0], [4.0, 40.0]])
    normalized, mean, std = Normalizer().fit(batch)

    np.testing.assert_allclose(mean, [2.5, 25.0])
    np.testing.assert_allclose(std, batch.std(axis=0))
    np.testing.assert_allclose(normalized.mean(axis=0), [0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(normalized.std(axis=0), [1.0, 1.0], rtol=1e-5)


def test_constant_column_never_divides_by_zero():
    batch = np.array([[5.0, 0.1], [5.0, 0.1], [5.0, 0.1]])
    normalized, mean, std = Normalizer().fit(batch)

    np.testing.assert_array_equal(std, [1.0, 1.0])
    assert np.all(np.isfinite(normalized))
    np.testing.assert_allclose(normalized, 0.0, atol=1e-6)


def test_fit_uses_epsilon_for_training_batch():
    batch = np.array([[0.0], [2.0]])
    normalized, _, _ = Normalizer().fit(batch)
    np.testing.assert_allclose(normalized[:, 0], [-1.0 / (1.0 + EPSILON), 1.0 / (1.0 + EPSILON)])


@pytest.mark.parametrize("batch", [[], [[]], [1.0, 2.0], [[1.0, 2.0], [3.0]]])
def test_fit_rejects_bad_batches(batch):
    with pytest.raises(ValueError):
        Normalizer().fit(batch)


@settings(max_examples=100, deadline=None)
@given(batch=batches)
def test_normalize_denormalize_round_trip(batch):
    normalizer = Normalizer()
    _, mean, std = normalizer.fit(batch)

    assert np.all(std != 0)
    for row in batch:
        restored = normalizer.denormalize(normalizer.normalize(row, mean, std), mean, std)
        np.testing.assert_allclose(restored, row, rtol=1e-6, atol=1e-6)


def test_parameters_slice_features_and_labels():
    params = NormalizationParameters.from_stats(
        feature_mean=[1.0, 2.0, 3.0],
        feature_std=[1.0, 1.0, 2.0],
        label_mean=[10.0, 20.0, 30.0, 40.0],
        label_std=[0.5, 0.5, 0.5, 0.5],
    )

    assert len(params.mean) == len(params.std) == 7
    assert params.feature_length == 3
    np.testing.assert_array_equal(params.feature_mean, [1.0, 2.0, 3.0])
    np.testing.assert_array_equal(params.feature_std, [1.0, 1.0, 2.0])
    np.testing.assert_array_equal(params.label_mean, [10.0, 20.0, 30.0, 40.0])
    np.testing.assert_array_equal(params.label_std, [0.5] * 4)


def test_parameters_dict_round_trip():
    params = NormalizationParameters(mean=[0.0] * 6, std=[1.0] * 6)
    assert NormalizationParameters.from_dict(params.to_dict()) == params


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"mean": [0.0] * 6},
        {"mean": "abc", "std": [1.0] * 6},
        {"mean": [0.0] * 6, "std": [1.0] * 5},
        {"mean": [0.0] * 6, "std": [1.0] * 5 + [0.0]},
        {"mean": [0.0] * 4, "std": [1.0] * 4},
        {"mean": [0.0] * 5 + [float("nan")], "std": [1.0] * 6},
    ],
)
def test_parameters_reject_malformed_input(data):
    with pytest.raises(ValueError):
        NormalizationParameters.from_dict(data)


@pytest.mark.parametrize("n_labels", [0, -1])
def test_parameters_need_at_least_one_label(n_labels):
    with pytest.raises(ValueError, match="n_labels"):
        NormalizationParameters(mean=[1.0, 2.0, 3.0], std=[1.0, 1.0, 1.0], n_labels=n_labels)
