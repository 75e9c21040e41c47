"""Sliding-window feature construction from daily observations."""

import datetime as dt
import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from weatherml.data.structs import OBSERVATION_FIELDS, TARGET_FIELDS, DailyObservation
from weatherml.utils.error_handling import InsufficientDataError

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK = 7
N_TEMPORAL_FEATURES = 4
N_LABELS = len(TARGET_FIELDS)


def feature_length(lookback: int) -> int:
    """Width of a feature vector for the given lookback."""
    return len(OBSERVATION_FIELDS) * lookback + N_TEMPORAL_FEATURES


def temporal_features(day: dt.date) -> List[float]:
    """
    Calendar features for the target day.

    Month is zero-based, so January maps to 0 and December to 11/12; the
    sine/cosine pair keeps December and January adjacent.
    """
    month_index = day.month - 1
    angle = 2 * math.pi * month_index / 12
    return [
        month_index / 12,
        day.day / 31,
        math.sin(angle),
        math.cos(angle),
    ]


def label_vector(obs: DailyObservation) -> List[float]:
    return [getattr(obs, name) for name in TARGET_FIELDS]


class FeatureWindowBuilder:
    """
    Turns an ordered history into (feature, label) training pairs.

    A feature vector is the six observation fields of each of the
    ``lookback`` preceding days, oldest first, followed by the temporal
    features of the target day.
    """

    def __init__(self, lookback: int = DEFAULT_LOOKBACK):
        if lookback < 1:
            raise ValueError(f"lookback must be >= 1, got {lookback}")
        self.lookback = lookback

    @property
    def feature_length(self) -> int:
        return feature_length(self.lookback)

    def _window_vector(self, window: Sequence[DailyObservation], target_date: dt.date) -> List[float]:
        vector: List[float] = []
        for obs in window:
            vector.extend(obs.values())
        vector.extend(temporal_features(target_date))
        return vector

    def build_pairs(self, history: Sequence[DailyObservation]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Build training pairs.

        Args:
            history: Observations in chronological order

        Returns:
            (features, labels) arrays of shape (L - lookback, feature_length)
            and (L - lookback, 4). Both are empty when the history is not
            longer than the lookback.
        """
        features, labels = [], []
        for i in range(self.lookback, len(history)):
            window = history[i - self.lookback:i]
            features.append(self._window_vector(window, history[i].date))
            labels.append(label_vector(history[i]))

        if not features:
            return (
                np.empty((0, self.feature_length), dtype=np.float64),
                np.empty((0, N_LABELS), dtype=np.float64),
            )
        return np.asarray(features, dtype=np.float64), np.asarray(labels, dtype=np.float64)

    def build_next_features(self, history: Sequence[DailyObservation]) -> np.ndarray:
        """
        Feature vector for the day after the last observation.

        Raises:
            InsufficientDataError: If the history is shorter than the lookback
        """
        if len(history) < self.lookback:
            raise InsufficientDataError(
                f"Need at least {self.lookback} observations, got {len(history)}",
                details={"lookback": self.lookback, "available": len(history)},
            )
        window = history[-self.lookback:]
        next_date = window[-1].date + dt.timedelta(days=1)
        return np.asarray(self._window_vector(window, next_date), dtype=np.float64)
