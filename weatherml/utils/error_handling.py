"""Error taxonomy for the forecasting pipeline."""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class WeatherForecastError(Exception):
    """Base class for all errors raised by weatherml."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class InsufficientDataError(WeatherForecastError, ValueError):
    """Not enough history to build a single feature window."""


class InvalidHistoryError(WeatherForecastError, ValueError):
    """History is unordered, has duplicate dates or is otherwise malformed."""


class ModelNotReadyError(WeatherForecastError, RuntimeError):
    """Prediction requested before a successful train or load."""


class TrainingError(WeatherForecastError, RuntimeError):
    """Numerical or backend failure while fitting the network."""


class PersistenceError(WeatherForecastError):
    """Saving or loading model state failed."""
