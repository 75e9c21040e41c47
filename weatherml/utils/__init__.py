"""Configuration, logging, error and serialization utilities."""

from weatherml.utils.error_handling import (
    WeatherForecastError,
    InsufficientDataError,
    InvalidHistoryError,
    ModelNotReadyError,
    TrainingError,
    PersistenceError,
)

__all__ = [
    "WeatherForecastError",
    "InsufficientDataError",
    "InvalidHistoryError",
    "ModelNotReadyError",
    "TrainingError",
    "PersistenceError",
]
