"""Logging configuration for training and forecasting runs."""

import logging
import sys
import json
from pathlib import Path
from typing import Union
from datetime import datetime


class JSONFormatter(logging.Formatter):
    """JSON-lines formatter for structured logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "funcName": record.funcName,
            "lineNo": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Structured context passed as extra={"props": {...}}
        if hasattr(record, "props"):
            log_obj.update(record.props)

        return json.dumps(log_obj, default=str)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Union[str, Path] = "logs",
) -> None:
    """
    Configure the root logger.

    Installs a human readable console handler plus two JSON-lines file
    handlers: ``app.jsonl`` for everything at ``log_level`` and
    ``errors.jsonl`` for ERROR and above.

    Args:
        log_level: Logging level name (INFO, DEBUG, ...)
        log_dir: Directory for the JSON log files
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    )
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_path / "app.jsonl")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(file_handler)

    error_handler = logging.FileHandler(log_path / "errors.jsonl")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(error_handler)

    logging.info(f"Logging configured with level {log_level}")
