"""Pytest configuration and shared fixtures."""

import os
# JAX backend for every Keras test in the suite
os.environ.setdefault("KERAS_BACKEND", "jax")

from datetime import date, timedelta

import pytest

from weatherml.data.structs import DailyObservation
from weatherml.models.model_store import ModelStore
from weatherml.utils.config_manager import ForecasterConfig


def build_history(
    n_days,
    start=date(2023, 1, 1),
    temperature=20.0,
    temperature_step=0.0,
    humidity=65.0,
    rainfall=1.0,
    wind_speed=3.0,
    pressure=1013.0,
    cloud_cover=40.0,
):
    """Consecutive daily observations with an optional linear temperature trend."""
    return [
        DailyObservation(
            date=start + timedelta(days=i),
            temperature=temperature + temperature_step * i,
            humidity=humidity,
            rainfall=rainfall,
            wind_speed=wind_speed,
            pressure=pressure,
            cloud_cover=cloud_cover,
        )
        for i in range(n_days)
    ]


@pytest.fixture
def history_factory():
    """The build_history helper as a fixture."""
    return build_history


@pytest.fixture
def varied_history():
    """40 days where every field moves, so no column is constant."""
    start = date(2023, 3, 1)
    return [
        DailyObservation(
            date=start + timedelta(days=i),
            temperature=18.0 + 0.2 * i + (i % 3),
            humidity=60.0 + (i % 7) * 2.0,
            rainfall=float(i % 4),
            wind_speed=2.0 + (i % 5) * 0.5,
            pressure=1010.0 + (i % 6),
            cloud_cover=30.0 + (i % 8) * 5.0,
        )
        for i in range(40)
    ]


@pytest.fixture
def trend_history():
    """60 days, temperature rising 0.1 C/day, all other fields constant."""
    return build_history(60, temperature=20.0, temperature_step=0.1)


@pytest.fixture
def fast_config(tmp_path):
    """Forecaster config with a tiny training budget and a temp storage dir."""
    return ForecasterConfig(
        hyperparameters={"epochs": 2, "batch_size": 8, "seed": 7, "log_every": 1},
        storage_dir=str(tmp_path / "models"),
    )


@pytest.fixture
def model_store(tmp_path):
    return ModelStore(storage_dir=tmp_path / "store", key="test-model")
