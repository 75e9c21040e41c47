"""
Configuration management utilities.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "forecaster_config.yaml"
DEFAULT_SCHEMA_NAME = "forecaster_config_schema.json"


class ConfigManager:
    """
    Manages loading, validation, and merging of configurations.
    """

    def __init__(self, config_dir: Optional[Union[str, Path]] = None, schema_dir: Optional[Union[str, Path]] = None):
        self.config_dir = Path(config_dir) if config_dir else Path("config")
        self.schema_dir = Path(schema_dir) if schema_dir else self.config_dir / "schemas"

    def load_config(self, config_name: str, schema_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a configuration file (YAML or JSON).
        Optionally validate against a schema.

        Args:
            config_name: Name of config file (e.g. 'forecaster_config.yaml')
            schema_name: Name of schema file (e.g. 'forecaster_config_schema.json')

        Returns:
            Loaded configuration dictionary
        """
        config_path = self.config_dir / config_name

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            if config_path.suffix in (".yaml", ".yml"):
                config = yaml.safe_load(f) or {}
            elif config_path.suffix == ".json":
                config = json.load(f)
            else:
                raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

        if schema_name:
            self.validate_config(config, schema_name)

        return config

    def validate_config(self, config: Dict[str, Any], schema_name: str) -> None:
        """
        Validate configuration against a JSON schema.

        Raises:
            FileNotFoundError: If the schema file is missing
            ValueError: If the configuration violates the schema
        """
        schema_path = self.schema_dir / schema_name

        if not schema_path.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, "r") as f:
            schema = json.load(f)

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.exceptions.ValidationError as e:
            path_str = " -> ".join(str(p) for p in e.path) if e.path else "root"
            error_msg = f"Configuration validation failed at '{path_str}': {e.message}"
            logger.error(error_msg)
            raise ValueError(error_msg) from e

        logger.info(f"Configuration successfully validated against {schema_name}")

    def merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two configurations. Values in ``override`` win.
        """
        merged = base.copy()
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self.merge_configs(merged[key], value)
            else:
                merged[key] = value
        return merged

    def get_value(self, config: Dict[str, Any], path: str, default: Any = None) -> Any:
        """
        Get a value from configuration using dot notation.

        Args:
            config: Configuration dictionary
            path: Dot-separated path (e.g., 'model.hyperparameters.learning_rate')
            default: Default value if path not found
        """
        current = config
        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current


@dataclass
class ConfidenceSettings:
    """Horizon-decaying confidence heuristic: clamp(base - decay * step, floor, ceiling)."""
    base: float = 85.0
    decay: float = 3.0
    floor: float = 60.0
    ceiling: float = 95.0

    def for_step(self, step_index: int) -> float:
        return max(self.floor, min(self.ceiling, self.base - self.decay * step_index))


@dataclass
class ForecasterConfig:
    """Settings for one WeatherForecaster instance."""
    lookback: int = 7
    forecast_days: int = 7
    hyperparameters: Dict[str, Any] = field(default_factory=dict)
    confidence: ConfidenceSettings = field(default_factory=ConfidenceSettings)
    storage_dir: str = "models"
    model_key: str = "weather-forecast-model"

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ForecasterConfig":
        manager = ConfigManager()
        defaults = cls()
        return cls(
            lookback=manager.get_value(config, "forecast.lookback", defaults.lookback),
            forecast_days=manager.get_value(config, "forecast.days", defaults.forecast_days),
            hyperparameters=dict(manager.get_value(config, "model.hyperparameters", {}) or {}),
            confidence=ConfidenceSettings(**(manager.get_value(config, "forecast.confidence", {}) or {})),
            storage_dir=manager.get_value(config, "persistence.storage_dir", defaults.storage_dir),
            model_key=manager.get_value(config, "persistence.model_key", defaults.model_key),
        )


def load_forecaster_config(
    config_dir: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ForecasterConfig:
    """
    Load, merge and validate the forecaster configuration.

    Args:
        config_dir: Directory holding forecaster_config.yaml and schemas/
        overrides: Nested dictionary merged on top of the file contents

    Returns:
        ForecasterConfig
    """
    manager = ConfigManager(config_dir)
    config = manager.load_config(DEFAULT_CONFIG_NAME)
    if overrides:
        config = manager.merge_configs(config, overrides)
    manager.validate_config(config, DEFAULT_SCHEMA_NAME)
    return ForecasterConfig.from_dict(config)
