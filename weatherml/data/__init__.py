"""Observation structures, loading, validation and simulated histories."""

from .structs import (
    OBSERVATION_FIELDS,
    TARGET_FIELDS,
    DailyObservation,
    Prediction,
    ModelMetrics,
    ForecastResult,
)
from .loaders import history_from_frame, history_to_frame, load_history_csv, predictions_to_frame
from .validators import HistoryValidator, ValidationResult
from .synthetic import generate_synthetic_history

__all__ = [
    "OBSERVATION_FIELDS",
    "TARGET_FIELDS",
    "DailyObservation",
    "Prediction",
    "ModelMetrics",
    "ForecastResult",
    "history_from_frame",
    "history_to_frame",
    "load_history_csv",
    "predictions_to_frame",
    "HistoryValidator",
    "ValidationResult",
    "generate_synthetic_history",
]
