"""Training-fit metrics for the regression network."""

import logging
from typing import Optional

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from weatherml.data.structs import ModelMetrics

logger = logging.getLogger(__name__)


def accuracy_from_mae(mae: float) -> float:
    """Rough fit score: 100 - 10 * MAE, clipped to [0, 100]."""
    return float(np.clip(100.0 - 10.0 * mae, 0.0, 100.0))


def compute_training_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    training_time: float,
    final_loss: Optional[float] = None,
    final_val_loss: Optional[float] = None,
) -> ModelMetrics:
    """
    Compute metrics for a training run.

    Both arrays are expected in normalized units and are usually the
    training batch itself, so the result describes how well the network fits
    what it saw, not how it generalizes.

    Args:
        y_true: Normalized labels, shape (n, 4)
        y_pred: Network outputs, shape (n, 4)
        training_time: Wall time of the run in milliseconds
        final_loss: Last epoch training loss
        final_val_loss: Last epoch validation loss, if a split was used

    Returns:
        ModelMetrics
    """
    y_true = np.asarray(y_true, dtype=np.float64)
    y_pred = np.asarray(y_pred, dtype=np.float64)
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: y_true {y_true.shape} vs y_pred {y_pred.shape}")

    mae = float(mean_absolute_error(y_true, y_pred))
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))

    return ModelMetrics(
        accuracy=accuracy_from_mae(mae),
        mae=mae,
        rmse=rmse,
        training_time=max(0.0, float(training_time)),
        final_loss=final_loss,
        final_val_loss=final_val_loss,
    )
