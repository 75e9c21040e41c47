"""Validation of observation histories before training or forecasting."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence
import logging

from weatherml.data.structs import DailyObservation

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of history validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "is_valid": self.is_valid,
            "errors": self.errors,
            "warnings": self.warnings,
        }


class HistoryValidator:
    """Checks that a history is a usable, time-ordered daily series."""

    def validate(self, history: Sequence[DailyObservation]) -> ValidationResult:
        """
        Validate ordering and spacing of a history.

        Dates that repeat or go backwards are errors. Calendar gaps are only
        warnings: the window builder still works, but the lookback then
        spans more than ``lookback`` days.

        Args:
            history: Observations in chronological order

        Returns:
            ValidationResult with validation details
        """
        errors: List[str] = []
        warnings: List[str] = []

        for i, obs in enumerate(history):
            if not isinstance(obs, DailyObservation):
                errors.append(f"Entry {i} is {type(obs).__name__}, expected DailyObservation")

        if errors:
            return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

        for i in range(1, len(history)):
            prev_date, curr_date = history[i - 1].date, history[i].date
            delta = (curr_date - prev_date).days
            if delta == 0:
                errors.append(f"Duplicate date {curr_date.isoformat()} at index {i}")
            elif delta < 0:
                errors.append(
                    f"Date {curr_date.isoformat()} at index {i} precedes {prev_date.isoformat()}"
                )
            elif delta > 1:
                warnings.append(
                    f"Gap of {delta - 1} day(s) between {prev_date.isoformat()} and {curr_date.isoformat()}"
                )

        if warnings:
            logger.warning(f"History has {len(warnings)} calendar gap(s)")

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
