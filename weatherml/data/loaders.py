"""Conversion between pandas DataFrames / CSV files and observation lists."""

from pathlib import Path
from typing import List, Sequence, Union
import logging

import pandas as pd

from weatherml.data.structs import OBSERVATION_FIELDS, DailyObservation, Prediction

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date",) + OBSERVATION_FIELDS


def history_from_frame(df: pd.DataFrame) -> List[DailyObservation]:
    """
    Build observations from a DataFrame.

    The date can be a ``date`` column or a DatetimeIndex. Rows are sorted by
    date; all observation columns are required.

    Raises:
        ValueError: If required columns are missing or contain nulls
    """
    frame = df.copy()
    if "date" not in frame.columns:
        if isinstance(frame.index, pd.DatetimeIndex):
            frame = frame.rename_axis("date").reset_index()
        else:
            raise ValueError("DataFrame needs a 'date' column or a DatetimeIndex")

    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise ValueError(f"Missing required column(s): {missing}")

    frame = frame[list(REQUIRED_COLUMNS)].copy()
    if frame.isnull().any().any():
        null_cols = frame.columns[frame.isnull().any()].tolist()
        raise ValueError(f"Null values in column(s): {null_cols}")

    frame["date"] = pd.to_datetime(frame["date"]).dt.date
    frame = frame.sort_values("date")

    return [
        DailyObservation(date=row["date"], **{name: row[name] for name in OBSERVATION_FIELDS})
        for row in frame.to_dict(orient="records")
    ]


def history_to_frame(history: Sequence[DailyObservation]) -> pd.DataFrame:
    """Observations as a DataFrame indexed by date."""
    records = [{"date": obs.date, **dict(zip(OBSERVATION_FIELDS, obs.values()))} for obs in history]
    frame = pd.DataFrame(records, columns=list(REQUIRED_COLUMNS))
    frame["date"] = pd.to_datetime(frame["date"])
    return frame.set_index("date")


def predictions_to_frame(predictions: Sequence[Prediction]) -> pd.DataFrame:
    """Predictions as a DataFrame indexed by date."""
    frame = pd.DataFrame([p.to_dict() for p in predictions])
    if frame.empty:
        return frame
    frame["date"] = pd.to_datetime(frame["date"])
    return frame.set_index("date")


def load_history_csv(path: Union[str, Path]) -> List[DailyObservation]:
    """
    Load a history from CSV.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"History file not found: {path}")

    history = history_from_frame(pd.read_csv(file_path, float_precision="round_trip"))
    logger.info(f"Loaded {len(history)} observations from {path}")
    return history
