"""Persistence of trained forecaster state as one atomic unit."""

import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

from weatherml.features.normalization import NormalizationParameters
from weatherml.models.regression_network import RegressionNetwork
from weatherml.utils.error_handling import PersistenceError
from weatherml.utils.serialization import load_json, save_json

logger = logging.getLogger(__name__)

NETWORK_DIRNAME = "network"
PARAMS_FILENAME = "scale_params.json"
MARKER_FILENAME = "trained.json"


@dataclass
class StoredModel:
    """Everything needed to restore a trained forecaster."""
    network: RegressionNetwork
    parameters: NormalizationParameters
    lookback: int
    marker: Dict[str, Any]


class ModelStore:
    """
    Saves and restores network weights, normalization parameters and the
    trained marker under a stable key.

    Layout::

        <storage_dir>/<key>/
            network/model.keras
            network/network.json
            scale_params.json
            trained.json
    """

    def __init__(self, storage_dir: Union[str, Path] = "models", key: str = "weather-forecast-model"):
        self.storage_dir = Path(storage_dir)
        self.key = key

    @property
    def path(self) -> Path:
        return self.storage_dir / self.key

    def exists(self) -> bool:
        return (self.path / MARKER_FILENAME).exists()

    def save(
        self,
        network: RegressionNetwork,
        parameters: NormalizationParameters,
        lookback: int,
    ) -> Path:
        """
        Persist a trained state.

        Everything is written to a temporary sibling directory first and then
        swapped into place, so readers see either the old or the new state.

        Returns:
            Path of the saved state

        Raises:
            PersistenceError: If any part cannot be written
        """
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        staging = self.storage_dir / f".{self.key}.tmp-{uuid.uuid4().hex}"
        backup = self.storage_dir / f".{self.key}.old-{uuid.uuid4().hex}"

        try:
            network.save(staging / NETWORK_DIRNAME)
            save_json(parameters.to_dict(), staging / PARAMS_FILENAME)
            save_json(
                {
                    "trained": True,
                    "model_id": network.model_id,
                    "model_type": network.model_type,
                    "lookback": lookback,
                    "feature_length": parameters.feature_length,
                    "saved_at": datetime.now(),
                },
                staging / MARKER_FILENAME,
            )

            if self.path.exists():
                os.replace(self.path, backup)
            os.replace(staging, self.path)
        except Exception as e:
            if backup.exists() and not self.path.exists():
                os.replace(backup, self.path)
            raise PersistenceError(f"Failed to save model state to {self.path}: {e}") from e
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        shutil.rmtree(backup, ignore_errors=True)
        logger.info(f"Saved model state {network.model_id} to {self.path}")
        return self.path

    def load(self) -> StoredModel:
        """
        Restore a saved state.

        Raises:
            PersistenceError: If any part is missing, unparsable or the parts
                disagree with each other
        """
        if not self.exists():
            raise PersistenceError(f"No saved model state at {self.path}")

        try:
            marker = load_json(self.path / MARKER_FILENAME)
            if not isinstance(marker, dict) or marker.get("trained") is not True:
                raise ValueError("trained marker is not set")

            parameters = NormalizationParameters.from_dict(load_json(self.path / PARAMS_FILENAME))
            network = RegressionNetwork().load(self.path / NETWORK_DIRNAME)
            lookback = int(marker["lookback"])
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to load model state from {self.path}: {e}") from e

        if network.input_dim != parameters.feature_length:
            raise PersistenceError(
                f"Network expects {network.input_dim} features but parameters cover {parameters.feature_length}"
            )
        if network.output_dim != parameters.n_labels:
            raise PersistenceError(
                f"Network has {network.output_dim} outputs but parameters cover {parameters.n_labels} labels"
            )
        if marker.get("feature_length") != parameters.feature_length:
            raise PersistenceError("Trained marker does not match stored parameters")

        logger.info(f"Loaded model state {network.model_id} from {self.path}")
        return StoredModel(network=network, parameters=parameters, lookback=lookback, marker=marker)

    def clear(self) -> None:
        """Remove the saved state, if any."""
        if self.path.exists():
            shutil.rmtree(self.path)
            logger.info(f"Cleared model state at {self.path}")
