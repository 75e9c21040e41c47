"""Feature windowing and normalization for the forecasting pipeline."""

from .windowing import (
    DEFAULT_LOOKBACK,
    N_LABELS,
    N_TEMPORAL_FEATURES,
    FeatureWindowBuilder,
    feature_length,
    temporal_features,
)
from .normalization import EPSILON, NormalizationParameters, Normalizer

__all__ = [
    "DEFAULT_LOOKBACK",
    "N_LABELS",
    "N_TEMPORAL_FEATURES",
    "FeatureWindowBuilder",
    "feature_length",
    "temporal_features",
    "EPSILON",
    "NormalizationParameters",
    "Normalizer",
]
