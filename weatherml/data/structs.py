"""Core data structures for the forecasting pipeline."""

import datetime as dt
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Union

OBSERVATION_FIELDS = (
    "temperature",
    "humidity",
    "rainfall",
    "wind_speed",
    "pressure",
    "cloud_cover",
)
TARGET_FIELDS = ("temperature", "humidity", "rainfall", "wind_speed")

DateLike = Union[dt.date, dt.datetime, str]


def to_date(value: DateLike) -> dt.date:
    """Coerce a date, datetime or ISO-8601 string to a calendar date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    raise TypeError(f"Cannot interpret {value!r} as a date")


@dataclass(frozen=True)
class DailyObservation:
    """
    One day of weather observations.

    Attributes:
        date: Calendar day of the observation
        temperature: Mean temperature (degrees C)
        humidity: Relative humidity (%)
        rainfall: Precipitation (mm)
        wind_speed: Wind speed (m/s)
        pressure: Surface pressure (hPa)
        cloud_cover: Cloud cover (%)
    """
    date: dt.date
    temperature: float
    humidity: float
    rainfall: float
    wind_speed: float
    pressure: float
    cloud_cover: float

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))
        for name in OBSERVATION_FIELDS:
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

    def values(self) -> List[float]:
        """Numeric fields in feature-column order."""
        return [getattr(self, name) for name in OBSERVATION_FIELDS]

    def to_dict(self) -> Dict[str, Any]:
        result = {f.name: getattr(self, f.name) for f in fields(self)}
        result["date"] = self.date.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailyObservation":
        return cls(date=data["date"], **{name: data[name] for name in OBSERVATION_FIELDS})


@dataclass(frozen=True)
class Prediction:
    """Forecast for a single future day."""
    date: dt.date
    temperature: float
    humidity: float
    rainfall: float
    wind_speed: float
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "rainfall": self.rainfall,
            "wind_speed": self.wind_speed,
            "confidence": self.confidence,
        }


@dataclass
class ModelMetrics:
    """
    Summary of one training run.

    ``accuracy``, ``mae`` and ``rmse`` are measured on the training batch in
    normalized units, so they describe fit rather than generalization.
    ``training_time`` is in milliseconds.
    """
    accuracy: float
    mae: float
    rmse: float
    training_time: float
    final_loss: Optional[float] = None
    final_val_loss: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "mae": self.mae,
            "rmse": self.rmse,
            "training_time": self.training_time,
            "final_loss": self.final_loss,
            "final_val_loss": self.final_val_loss,
        }


@dataclass
class ForecastResult:
    """Predictions bundled with the metrics of the model that produced them."""
    predictions: List[Prediction]
    metrics: Optional[ModelMetrics] = None
    timestamp: dt.datetime = field(default_factory=dt.datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictions": [p.to_dict() for p in self.predictions],
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "timestamp": self.timestamp.isoformat(),
        }
