"""Evaluation metrics."""

from .metrics import accuracy_from_mae, compute_training_metrics

__all__ = ["accuracy_from_mae", "compute_training_metrics"]
