"""Regression network, model persistence and the forecaster."""

from weatherml.models.regression_network import RegressionNetwork
from weatherml.models.model_store import ModelStore, StoredModel
from weatherml.models.forecaster import ModelState, WeatherForecaster

__all__ = ["RegressionNetwork", "ModelStore", "StoredModel", "ModelState", "WeatherForecaster"]
