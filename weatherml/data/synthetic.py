"""Simulated daily histories around a reference observation."""

import datetime as dt
import logging
from typing import List, Optional

import numpy as np

from weatherml.data.structs import DailyObservation

logger = logging.getLogger(__name__)

DEFAULT_BASE = {
    "temperature": 22.0,
    "humidity": 65.0,
    "rainfall": 0.5,
    "wind_speed": 3.5,
    "pressure": 1013.0,
    "cloud_cover": 40.0,
}


def generate_synthetic_history(
    days: int = 30,
    base: Optional[DailyObservation] = None,
    end_date: Optional[dt.date] = None,
    seed: Optional[int] = None,
) -> List[DailyObservation]:
    """
    Generate ``days + 1`` daily observations ending at ``end_date``.

    Each day is the base observation plus uniform noise: temperature +/-5,
    humidity +/-10, rainfall +[0, 5), wind speed +/-1.5, pressure +/-10 and
    cloud cover +/-15. Humidity and cloud cover are clipped to [0, 100];
    rainfall and wind speed to >= 0.

    Args:
        days: Number of days before ``end_date`` to include
        base: Reference observation (defaults to a temperate climate)
        end_date: Last date of the series (defaults to today)
        seed: Seed for the random generator

    Returns:
        Observations in chronological order
    """
    if days < 0:
        raise ValueError(f"days must be non-negative, got {days}")

    rng = np.random.default_rng(seed)
    end = end_date or dt.date.today()
    ref = base.to_dict() if base is not None else DEFAULT_BASE

    history = []
    for offset in range(days, -1, -1):
        history.append(DailyObservation(
            date=end - dt.timedelta(days=offset),
            temperature=ref["temperature"] + rng.uniform(-5.0, 5.0),
            humidity=float(np.clip(ref["humidity"] + rng.uniform(-10.0, 10.0), 0.0, 100.0)),
            rainfall=max(0.0, ref["rainfall"] + rng.uniform(0.0, 5.0)),
            wind_speed=max(0.0, ref["wind_speed"] + rng.uniform(-1.5, 1.5)),
            pressure=ref["pressure"] + rng.uniform(-10.0, 10.0),
            cloud_cover=float(np.clip(ref["cloud_cover"] + rng.uniform(-15.0, 15.0), 0.0, 100.0)),
        ))

    logger.debug(f"Generated {len(history)} synthetic observations ending {end.isoformat()}")
    return history
