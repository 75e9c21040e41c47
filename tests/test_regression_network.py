"""
Tests for the Keras regression network.
"""

import os
os.environ.setdefault("KERAS_BACKEND", "jax")

import numpy as np
import pytest
from keras import layers

from weatherml.models.regression_network import NonFiniteLossGuard, RegressionNetwork
from weatherml.utils.error_handling import ModelNotReadyError, TrainingError

# --- Fixtures ---

@pytest.fixture
def regression_data():
    rng = np.random.default_rng(0)
    X = rng.normal(size=(40, 10))
    y = np.stack([X[:, 0] + X[:, 1], X[:, 2], -X[:, 3], X[:, 4] * 0.5], axis=1)
    return X, y


@pytest.fixture
def small_network():
    return RegressionNetwork(hyperparameters={"epochs": 2, "batch_size": 8, "seed": 1})

# --- Unit Tests ---

def test_architecture_matches_layout():
    network = RegressionNetwork()
    model = network._build_model(46, 4)

    dense = [layer for layer in model.layers if isinstance(layer, layers.Dense)]
    dropout = [layer for layer in model.layers if isinstance(layer, layers.Dropout)]

    assert [layer.units for layer in dense] == [128, 64, 32, 4]
    assert [layer.rate for layer in dropout] == pytest.approx([0.2, 0.2, 0.1])
    assert [layer.activation.__name__ for layer in dense] == ["relu", "relu", "relu", "linear"]
    assert model.input_shape == (None, 46)
    assert model.output_shape == (None, 4)


def test_defaults():
    network = RegressionNetwork(hyperparameters={"epochs": 3})
    assert network.hyperparameters["epochs"] == 3
    assert network.hyperparameters["batch_size"] == 16
    assert network.hyperparameters["learning_rate"] == 0.001
    assert network.hyperparameters["validation_split"] == 0.2


def test_mismatched_layer_settings():
    with pytest.raises(ValueError):
        RegressionNetwork(hyperparameters={"hidden_units": [16, 8], "dropout_rates": [0.1]})


def test_fit_predict(small_network, regression_data):
    X, y = regression_data
    small_network.fit(X, y)

    assert small_network.is_fitted
    assert small_network.input_dim == 10
    assert small_network.output_dim == 4
    assert "loss" in small_network.training_metrics
    assert "val_loss" in small_network.training_metrics
    assert len(small_network.history["loss"]) == 2

    preds = small_network.predict(X[:5])
    assert preds.shape == (5, 4)
    assert np.all(np.isfinite(preds))

    single = small_network.predict(X[0])
    assert single.shape == (1, 4)


def test_predict_is_deterministic(small_network, regression_data):
    """Dropout is inactive at inference."""
    X, y = regression_data
    small_network.fit(X, y)
    np.testing.assert_array_equal(small_network.predict(X), small_network.predict(X))


def test_seed_makes_training_reproducible(regression_data):
    X, y = regression_data
    hyperparameters = {"epochs": 2, "batch_size": 8, "seed": 3}

    first = RegressionNetwork(hyperparameters=hyperparameters).fit(X, y)
    second = RegressionNetwork(hyperparameters=hyperparameters).fit(X, y)

    np.testing.assert_allclose(first.predict(X), second.predict(X), rtol=1e-6, atol=1e-6)
    assert "process-wide" in RegressionNetwork.__init__.__doc__


def test_predict_before_fit():
    with pytest.raises(ModelNotReadyError):
        RegressionNetwork().predict(np.zeros((1, 46)))


def test_predict_wrong_width(small_network, regression_data):
    X, y = regression_data
    small_network.fit(X, y)
    with pytest.raises(ValueError):
        small_network.predict(np.zeros((1, 11)))


def test_fit_rejects_bad_input(small_network):
    with pytest.raises(ValueError):
        small_network.fit(np.zeros((0, 4)), np.zeros((0, 4)))
    with pytest.raises(ValueError):
        small_network.fit(np.zeros((5, 4)), np.zeros((4, 4)))


@pytest.mark.parametrize("n_samples, expected", [(1, 0.0), (2, 0.2), (5, 0.2), (40, 0.2)])
def test_validation_split_needs_both_sides(n_samples, expected):
    assert RegressionNetwork()._effective_validation_split(n_samples) == expected


def test_single_sample_trains_without_validation():
    network = RegressionNetwork(hyperparameters={"epochs": 1})
    network.fit(np.ones((1, 6)), np.zeros((1, 4)))
    assert network.is_fitted
    assert "val_loss" not in network.training_metrics


def test_non_finite_loss_guard():
    guard = NonFiniteLossGuard()
    guard.on_train_batch_end(0, {"loss": 0.5})
    guard.on_train_batch_end(1, {})
    with pytest.raises(TrainingError):
        guard.on_train_batch_end(2, {"loss": float("nan")})
    with pytest.raises(TrainingError):
        guard.on_train_batch_end(3, {"loss": float("inf")})


def test_divergence_raises_training_error():
    network = RegressionNetwork(hyperparameters={"epochs": 2, "batch_size": 2})
    X = np.full((6, 4), np.inf)
    y = np.zeros((6, 4))

    with pytest.raises(TrainingError):
        network.fit(X, y)
    assert not network.is_fitted


def test_save_load(small_network, regression_data, tmp_path):
    X, y = regression_data
    small_network.fit(X, y)
    small_network.save(tmp_path / "net")

    loaded = RegressionNetwork().load(tmp_path / "net")

    assert loaded.is_fitted
    assert loaded.model_id == small_network.model_id
    assert loaded.hyperparameters["epochs"] == 2
    np.testing.assert_allclose(small_network.predict(X), loaded.predict(X), atol=1e-5)


def test_save_unfitted(tmp_path):
    with pytest.raises(ModelNotReadyError):
        RegressionNetwork().save(tmp_path / "net")
