import os
# JAX is the default backend; set before keras is imported anywhere
os.environ.setdefault("KERAS_BACKEND", "jax")

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import keras
from keras import layers, callbacks

from weatherml.utils.error_handling import ModelNotReadyError, TrainingError

logger = logging.getLogger(__name__)

MODEL_FILENAME = "model.keras"
METADATA_FILENAME = "network.json"


class NonFiniteLossGuard(callbacks.Callback):
    """Abort training as soon as a batch loss stops being finite."""

    def on_train_batch_end(self, batch, logs=None):
        loss = (logs or {}).get("loss")
        if loss is None:
            return
        loss = float(loss)
        if not np.isfinite(loss):
            raise TrainingError(
                f"Non-finite loss {loss} at batch {batch}",
                details={"batch": int(batch), "loss": loss},
            )


class EpochProgressLogger(callbacks.Callback):
    """Log loss and MAE every ``every`` epochs."""

    def __init__(self, every: int = 10):
        super().__init__()
        self.every = max(1, int(every))

    def on_epoch_end(self, epoch, logs=None):
        if epoch % self.every != 0:
            return
        logs = logs or {}
        message = f"Epoch {epoch}: loss = {float(logs.get('loss', float('nan'))):.4f}"
        if "mae" in logs:
            message += f", mae = {float(logs['mae']):.4f}"
        if "val_loss" in logs:
            message += f", val_loss = {float(logs['val_loss']):.4f}"
        logger.info(message)


class RegressionNetwork:
    """
    Feed-forward regressor mapping a normalized feature vector to the four
    normalized next-day targets, using Keras (JAX backend).
    """

    def __init__(
        self,
        model_id: Optional[str] = None,
        hyperparameters: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize the network wrapper.

        Hyperparameters:
            hidden_units: Width of each hidden Dense layer
            dropout_rates: Dropout after each hidden layer (training only)
            learning_rate: Adam learning rate
            epochs: Fixed number of training epochs
            batch_size: Mini-batch size
            validation_split: Fraction held out each fit for monitoring
            shuffle: Shuffle training samples every epoch
            log_every: Epoch interval for progress logging
            seed: Optional seed for weight init, dropout and shuffling. It is
                applied with keras.utils.set_random_seed, which reseeds the
                process-wide Python, numpy and backend generators.
        """
        self.model_id = model_id or self._generate_model_id()
        self.hyperparameters = dict(hyperparameters or {})
        self.model_object: Optional[keras.Model] = None
        self.is_fitted: bool = False
        self.training_metrics: Dict[str, float] = {}
        self.history: Dict[str, List[float]] = {}

        self.defaults = {
            "hidden_units": [128, 64, 32],
            "dropout_rates": [0.2, 0.2, 0.1],
            "learning_rate": 0.001,
            "epochs": 50,
            "batch_size": 16,
            "validation_split": 0.2,
            "shuffle": True,
            "log_every": 10,
            "seed": None,
        }
        for k, v in self.defaults.items():
            if k not in self.hyperparameters:
                self.hyperparameters[k] = v

        if len(self.hyperparameters["hidden_units"]) != len(self.hyperparameters["dropout_rates"]):
            raise ValueError("hidden_units and dropout_rates must have the same length")

    @property
    def model_type(self) -> str:
        return "dense_regressor_keras"

    def _generate_model_id(self) -> str:
        """Timestamped ID with a random suffix so back-to-back runs differ."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{self.model_type}_{timestamp}_{uuid.uuid4().hex[:6]}"

    @property
    def input_dim(self) -> Optional[int]:
        if self.model_object is None:
            return None
        return int(self.model_object.input_shape[-1])

    @property
    def output_dim(self) -> Optional[int]:
        if self.model_object is None:
            return None
        return int(self.model_object.output_shape[-1])

    def _build_model(self, input_dim: int, output_dim: int) -> keras.Model:
        """Build and compile the Dense/Dropout stack."""
        model = keras.Sequential(name="weather_regressor")
        model.add(layers.Input(shape=(input_dim,)))

        for units, rate in zip(self.hyperparameters["hidden_units"], self.hyperparameters["dropout_rates"]):
            model.add(layers.Dense(units, activation="relu", kernel_initializer="he_normal"))
            model.add(layers.Dropout(rate))

        model.add(layers.Dense(output_dim, activation="linear"))

        optimizer = keras.optimizers.Adam(learning_rate=self.hyperparameters["learning_rate"])
        model.compile(optimizer=optimizer, loss="mse", metrics=["mae"])
        return model

    def _effective_validation_split(self, n_samples: int) -> float:
        """Drop the split when it would leave either side without samples."""
        split = float(self.hyperparameters["validation_split"])
        if split <= 0:
            return 0.0
        n_train = int(n_samples * (1 - split))
        if n_train < 1 or n_samples - n_train < 1:
            logger.debug(f"Validation split disabled for {n_samples} sample(s)")
            return 0.0
        return split

    def fit(self, features: np.ndarray, labels: np.ndarray) -> "RegressionNetwork":
        """
        Train a fresh network on normalized features and labels.

        The validation split only feeds the progress log; the weights kept
        are those of the final epoch.

        Raises:
            ValueError: If the arrays are empty or their lengths differ
            TrainingError: If the loss diverges or the backend fails
        """
        X = np.asarray(features, dtype=np.float32)
        y = np.asarray(labels, dtype=np.float32)
        if X.ndim != 2 or y.ndim != 2 or len(X) == 0:
            raise ValueError(f"Expected non-empty 2-D arrays, got {X.shape} and {y.shape}")
        if len(X) != len(y):
            raise ValueError(f"Length mismatch: features ({len(X)}) vs labels ({len(y)})")

        if self.hyperparameters["seed"] is not None:
            keras.utils.set_random_seed(int(self.hyperparameters["seed"]))

        model = self._build_model(X.shape[1], y.shape[1])
        validation_split = self._effective_validation_split(len(X))

        try:
            history = model.fit(
                X, y,
                epochs=int(self.hyperparameters["epochs"]),
                batch_size=int(self.hyperparameters["batch_size"]),
                validation_split=validation_split,
                shuffle=bool(self.hyperparameters["shuffle"]),
                callbacks=[NonFiniteLossGuard(), EpochProgressLogger(self.hyperparameters["log_every"])],
                verbose=0,
            )
        except TrainingError:
            raise
        except Exception as e:
            raise TrainingError(f"Training failed: {e}") from e

        hist = {k: [float(v) for v in values] for k, values in history.history.items()}
        final_loss = hist["loss"][-1]
        if not np.isfinite(final_loss):
            raise TrainingError(f"Training ended with non-finite loss {final_loss}")

        self.model_object = model
        self.history = hist
        self.training_metrics = {"loss": final_loss}
        if "val_loss" in hist:
            self.training_metrics["val_loss"] = hist["val_loss"][-1]
        self.is_fitted = True
        return self

    def predict(self, features: np.ndarray) -> np.ndarray:
        """
        Forward pass with dropout inactive.

        Returns:
            Array of shape (n, output_dim) in normalized units
        """
        if not self.is_fitted or self.model_object is None:
            raise ModelNotReadyError("Network is not fitted")

        X = np.asarray(features, dtype=np.float32)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        if X.shape[1] != self.input_dim:
            raise ValueError(f"Expected {self.input_dim} features, got {X.shape[1]}")

        return np.asarray(self.model_object.predict(X, verbose=0), dtype=np.float64)

    def save(self, path: Union[str, Path]) -> None:
        """Write the Keras model and its metadata into a directory."""
        if not self.is_fitted:
            raise ModelNotReadyError("Cannot save unfitted network")

        save_dir = Path(path)
        save_dir.mkdir(parents=True, exist_ok=True)
        self.model_object.save(save_dir / MODEL_FILENAME)

        metadata = {
            "model_id": self.model_id,
            "model_type": self.model_type,
            "hyperparameters": self.hyperparameters,
            "training_metrics": self.training_metrics,
        }
        with open(save_dir / METADATA_FILENAME, "w") as f:
            json.dump(metadata, f, indent=2)

    def load(self, path: Union[str, Path]) -> "RegressionNetwork":
        """Restore a network written by ``save``."""
        load_dir = Path(path)

        model = keras.models.load_model(load_dir / MODEL_FILENAME)
        with open(load_dir / METADATA_FILENAME, "r") as f:
            metadata = json.load(f)

        self.model_object = model
        self.model_id = metadata["model_id"]
        self.hyperparameters = metadata["hyperparameters"]
        self.training_metrics = metadata.get("training_metrics", {})
        self.history = {}
        self.is_fitted = True
        return self

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_id='{self.model_id}', "
            f"is_fitted={self.is_fitted})"
        )
