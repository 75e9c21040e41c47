"""Training and recursive multi-day forecasting over daily observations."""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from weatherml.data.structs import DailyObservation, ForecastResult, ModelMetrics, Prediction
from weatherml.data.validators import HistoryValidator
from weatherml.evaluation.metrics import compute_training_metrics
from weatherml.features.normalization import NormalizationParameters, Normalizer
from weatherml.features.windowing import FeatureWindowBuilder, feature_length
from weatherml.models.model_store import ModelStore
from weatherml.models.regression_network import RegressionNetwork
from weatherml.utils.config_manager import ForecasterConfig
from weatherml.utils.error_handling import (
    InsufficientDataError,
    InvalidHistoryError,
    ModelNotReadyError,
    PersistenceError,
    TrainingError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelState:
    """A trained network together with the statistics it was trained on."""
    network: RegressionNetwork
    parameters: NormalizationParameters
    lookback: int

    @property
    def model_id(self) -> str:
        return self.network.model_id


class WeatherForecaster:
    """
    Trains a next-day regressor and rolls it forward to forecast several days.

    The instance owns its model state; ``train``, ``predict``, ``save`` and
    ``load`` are the only operations that touch it, and callers must not run
    them concurrently on one instance.
    """

    def __init__(self, config: Optional[ForecasterConfig] = None, store: Optional[ModelStore] = None):
        self.config = config or ForecasterConfig()
        self.store = store or ModelStore(self.config.storage_dir, self.config.model_key)
        self.last_metrics: Optional[ModelMetrics] = None
        self._state: Optional[ModelState] = None
        self._normalizer = Normalizer()
        self._validator = HistoryValidator()

    @property
    def is_trained(self) -> bool:
        return self._state is not None

    def is_ready(self) -> bool:
        """True once a train or load has succeeded."""
        return self.is_trained

    def _check_history(self, history: Sequence[DailyObservation]) -> List[DailyObservation]:
        history = list(history)
        result = self._validator.validate(history)
        if not result.is_valid:
            raise InvalidHistoryError(
                f"Invalid history: {'; '.join(result.errors[:3])}",
                details=result.to_dict(),
            )
        return history

    def _require_state(self) -> ModelState:
        if self._state is None:
            raise ModelNotReadyError("Model is not trained yet")
        return self._state

    def train(self, history: Sequence[DailyObservation]) -> ModelMetrics:
        """
        Fit a new network on the history.

        The new state replaces the current one only if every step succeeds;
        after a failure the instance keeps whatever state it had before.

        Args:
            history: Observations in chronological order

        Returns:
            ModelMetrics of the run (training-batch fit, normalized units)

        Raises:
            InvalidHistoryError: If dates are duplicated or out of order
            InsufficientDataError: If no feature window can be built
            TrainingError: If the network fails to train
        """
        start = time.perf_counter()
        history = self._check_history(history)
        builder = FeatureWindowBuilder(self.config.lookback)

        features, labels = builder.build_pairs(history)
        if len(features) == 0:
            raise InsufficientDataError(
                f"Insufficient data for training: need more than {builder.lookback} observations, got {len(history)}",
                details={"lookback": builder.lookback, "available": len(history)},
            )

        norm_features, feature_mean, feature_std = self._normalizer.fit(features)
        norm_labels, label_mean, label_std = self._normalizer.fit(labels)
        parameters = NormalizationParameters.from_stats(feature_mean, feature_std, label_mean, label_std)

        network = RegressionNetwork(hyperparameters=self.config.hyperparameters)
        logger.info(
            f"Training {network.model_id} on {len(features)} window(s) "
            f"of {features.shape[1]} features"
        )

        try:
            network.fit(norm_features, norm_labels)
            fitted = network.predict(norm_features)
        except TrainingError as e:
            logger.error(f"Training failed: {e}", extra={"props": e.to_dict()})
            raise

        if not np.all(np.isfinite(fitted)):
            raise TrainingError("Network produced non-finite outputs on the training batch")

        metrics = compute_training_metrics(
            norm_labels,
            fitted,
            training_time=(time.perf_counter() - start) * 1000.0,
            final_loss=network.training_metrics.get("loss"),
            final_val_loss=network.training_metrics.get("val_loss"),
        )

        self._state = ModelState(network=network, parameters=parameters, lookback=builder.lookback)
        self.last_metrics = metrics
        logger.info(
            f"Trained {network.model_id}: accuracy={metrics.accuracy:.2f}, "
            f"mae={metrics.mae:.4f}, rmse={metrics.rmse:.4f}, time={metrics.training_time:.0f}ms",
            extra={"props": {"model_id": network.model_id, "metrics": metrics.to_dict()}},
        )
        return metrics

    def predict(self, history: Sequence[DailyObservation], days: Optional[int] = None) -> List[Prediction]:
        """
        Forecast ``days`` consecutive days after the last observation.

        Each predicted day is appended to a working copy of the history so it
        becomes part of the next window. Errors therefore compound with the
        horizon; there is no ground truth for future days to correct them.
        Pressure and cloud cover are not predicted and are carried forward
        from the previous day.

        Args:
            history: Observations in chronological order, at least lookback long
            days: Forecast horizon (defaults to the configured forecast_days)

        Returns:
            Predictions in date order, starting the day after the history ends

        Raises:
            ModelNotReadyError: If no trained state is present
            InsufficientDataError: If the history is shorter than the lookback
        """
        state = self._require_state()
        days = self.config.forecast_days if days is None else days
        if days < 0:
            raise ValueError(f"days must be non-negative, got {days}")

        working = self._check_history(history)
        builder = FeatureWindowBuilder(state.lookback)
        if builder.feature_length != state.parameters.feature_length:
            raise ModelNotReadyError(
                f"Model state expects {state.parameters.feature_length} features, "
                f"lookback {state.lookback} gives {builder.feature_length}"
            )

        params = state.parameters
        predictions: List[Prediction] = []

        for step in range(days):
            raw_features = builder.build_next_features(working)
            normalized = self._normalizer.normalize(raw_features, params.feature_mean, params.feature_std)
            output = state.network.predict(normalized)[0]
            temperature, humidity, rainfall, wind_speed = (
                float(v) for v in self._normalizer.denormalize(output, params.label_mean, params.label_std)
            )

            previous = working[-1]
            next_date = previous.date + timedelta(days=1)

            predictions.append(Prediction(
                date=next_date,
                temperature=temperature,
                humidity=min(100.0, max(0.0, humidity)),
                rainfall=max(0.0, rainfall),
                wind_speed=max(0.0, wind_speed),
                confidence=self.config.confidence.for_step(step),
            ))

            # Unclamped values go back into the window
            working.append(DailyObservation(
                date=next_date,
                temperature=temperature,
                humidity=humidity,
                rainfall=rainfall,
                wind_speed=wind_speed,
                pressure=previous.pressure,
                cloud_cover=previous.cloud_cover,
            ))

        logger.info(f"Forecast {len(predictions)} day(s) with {state.model_id}")
        return predictions

    def forecast(self, history: Sequence[DailyObservation], days: Optional[int] = None) -> ForecastResult:
        """Predictions plus the metrics of the last training run (None after a load)."""
        return ForecastResult(predictions=self.predict(history, days), metrics=self.last_metrics)

    def save(self) -> Path:
        """
        Persist weights, normalization parameters and the trained marker.

        Raises:
            ModelNotReadyError: If there is nothing trained to save
            PersistenceError: If writing fails
        """
        state = self._require_state()
        return self.store.save(state.network, state.parameters, state.lookback)

    def load(self) -> bool:
        """
        Restore the saved state.

        Returns:
            True if weights, parameters and the trained marker were all
            present and consistent; False otherwise, leaving the current
            state unchanged.
        """
        try:
            stored = self.store.load()
        except PersistenceError as e:
            logger.warning(f"No usable saved model: {e}")
            return False

        if feature_length(stored.lookback) != stored.parameters.feature_length:
            logger.warning(
                f"Saved lookback {stored.lookback} does not match "
                f"{stored.parameters.feature_length} stored feature columns"
            )
            return False

        self._state = ModelState(network=stored.network, parameters=stored.parameters, lookback=stored.lookback)
        self.last_metrics = None
        return True

    def __repr__(self) -> str:
        model_id = self._state.model_id if self._state else None
        return f"{self.__class__.__name__}(model_id={model_id!r}, is_trained={self.is_trained})"
