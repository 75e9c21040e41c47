"""Z-score normalization with stored per-column statistics."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

import numpy as np

from weatherml.features.windowing import N_LABELS

logger = logging.getLogger(__name__)

EPSILON = 1e-7


@dataclass(frozen=True)
class NormalizationParameters:
    """
    Feature statistics followed by label statistics.

    The last ``n_labels`` entries of ``mean`` and ``std`` belong to the
    labels, everything before them to the features.
    """
    mean: Tuple[float, ...]
    std: Tuple[float, ...]
    n_labels: int = N_LABELS

    def __post_init__(self):
        object.__setattr__(self, "mean", tuple(float(m) for m in self.mean))
        object.__setattr__(self, "std", tuple(float(s) for s in self.std))
        if self.n_labels < 1:
            raise ValueError(f"n_labels must be at least 1, got {self.n_labels}")
        if len(self.mean) != len(self.std):
            raise ValueError(
                f"mean and std lengths differ: {len(self.mean)} != {len(self.std)}"
            )
        if len(self.mean) <= self.n_labels:
            raise ValueError(
                f"Expected more than {self.n_labels} entries, got {len(self.mean)}"
            )
        if not all(math.isfinite(m) for m in self.mean):
            raise ValueError("mean contains non-finite values")
        if not all(math.isfinite(s) and s != 0.0 for s in self.std):
            raise ValueError("std must be finite and non-zero")

    @classmethod
    def from_stats(
        cls,
        feature_mean: Sequence[float],
        feature_std: Sequence[float],
        label_mean: Sequence[float],
        label_std: Sequence[float],
    ) -> "NormalizationParameters":
        return cls(
            mean=tuple(feature_mean) + tuple(label_mean),
            std=tuple(feature_std) + tuple(label_std),
            n_labels=len(label_mean),
        )

    @property
    def feature_length(self) -> int:
        return len(self.mean) - self.n_labels

    @property
    def feature_mean(self) -> np.ndarray:
        return np.asarray(self.mean[:-self.n_labels])

    @property
    def feature_std(self) -> np.ndarray:
        return np.asarray(self.std[:-self.n_labels])

    @property
    def label_mean(self) -> np.ndarray:
        return np.asarray(self.mean[-self.n_labels:])

    @property
    def label_std(self) -> np.ndarray:
        return np.asarray(self.std[-self.n_labels:])

    def to_dict(self) -> Dict[str, Any]:
        return {"mean": list(self.mean), "std": list(self.std), "n_labels": self.n_labels}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NormalizationParameters":
        """
        Rebuild parameters from ``to_dict`` output.

        Raises:
            ValueError: If keys are missing or values are malformed
        """
        if not isinstance(data, dict) or "mean" not in data or "std" not in data:
            raise ValueError("Normalization parameters need 'mean' and 'std'")
        if not isinstance(data["mean"], list) or not isinstance(data["std"], list):
            raise ValueError("'mean' and 'std' must be lists")
        return cls(mean=data["mean"], std=data["std"], n_labels=int(data.get("n_labels", N_LABELS)))


class Normalizer:
    """Column-wise z-score scaling."""

    def __init__(self, epsilon: float = EPSILON):
        self.epsilon = epsilon

    def fit(self, batch: Any) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Compute column statistics and normalize the batch.

        The batch is scaled by the population std plus ``epsilon``. The
        returned std has exact zeros replaced by 1 so stored parameters never
        divide by zero.

        Args:
            batch: Non-empty rectangular 2-D batch of numbers

        Returns:
            (normalized batch, mean, std)

        Raises:
            ValueError: If the batch is empty, ragged or not 2-D
        """
        try:
            data = np.asarray(batch, dtype=np.float64)
        except ValueError as e:
            raise ValueError(f"Batch must be rectangular: {e}") from e

        if data.ndim != 2:
            raise ValueError(f"Batch must be 2-D, got {data.ndim} dimension(s)")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError("Batch cannot be empty")

        mean = data.mean(axis=0)
        # Constant columns get an exact zero; rounding in mean() would leave a tiny residue
        raw_std = np.where(np.ptp(data, axis=0) == 0, 0.0, data.std(axis=0))
        normalized = (data - mean) / (raw_std + self.epsilon)
        std = np.where(raw_std == 0, 1.0, raw_std)

        constant_cols = int(np.sum(raw_std == 0))
        if constant_cols:
            logger.debug(f"{constant_cols} constant column(s); std stored as 1")

        return normalized, mean, std

    @staticmethod
    def normalize(vector: Any, mean: Any, std: Any) -> np.ndarray:
        """Element-wise (x - mean) / std."""
        return (np.asarray(vector, dtype=np.float64) - np.asarray(mean)) / np.asarray(std)

    @staticmethod
    def denormalize(vector: Any, mean: Any, std: Any) -> np.ndarray:
        """Element-wise x * std + mean; inverse of ``normalize``."""
        return np.asarray(vector, dtype=np.float64) * np.asarray(std) + np.asarray(mean)
