"""Input validation utilities."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..models.activity import Activity


class ValidationError(Exception):
    """Custom error for validation related issues."""


class MalformedActivityError(ValidationError):
    """An activity violates the outcome-count or probability contract."""


def _describe(activity: Activity, position: int) -> str:
    return f"Activity {activity.activity_number} (row {position + 1})"


def validate_activities(
    activities: Sequence[Activity],
    *,
    outcome_count: Optional[int] = None,
    probability_tolerance: Optional[float] = 1e-6,
) -> int:
    """Check the activity table once before enumeration and return K.

    K is ``outcome_count`` when the caller already knows it (the loader fixes
    it from the column count), otherwise the outcome count of the first
    activity. Every activity must supply exactly K durations and K
    probabilities.
    """
    if not activities:
        raise MalformedActivityError("At least one activity is required.")

    if outcome_count is None:
        outcome_count = activities[0].outcome_count
        if outcome_count < 1:
            raise MalformedActivityError(
                f"{_describe(activities[0], 0)} has no duration outcomes."
            )
    elif outcome_count < 1:
        raise MalformedActivityError("At least one duration outcome is required.")

    tolerance = None if probability_tolerance is None else Decimal(repr(float(probability_tolerance)))
    for position, activity in enumerate(activities):
        label = _describe(activity, position)
        if len(activity.durations) != outcome_count:
            raise MalformedActivityError(
                f"{label} has {len(activity.durations)} durations; expected {outcome_count}."
            )
        if len(activity.probabilities) != outcome_count:
            raise MalformedActivityError(
                f"{label} has {len(activity.probabilities)} probabilities; expected {outcome_count}."
            )
        for duration in activity.durations:
            if duration < 0:
                raise MalformedActivityError(f"{label} has negative duration {duration}.")
        for probability in activity.probabilities:
            if not Decimal(0) <= probability <= Decimal(1):
                raise MalformedActivityError(
                    f"{label} has probability {probability} outside [0, 1]."
                )
        if tolerance is not None:
            total = sum(activity.probabilities, Decimal(0))
            if abs(total - Decimal(1)) > tolerance:
                raise MalformedActivityError(
                    f"{label} probabilities sum to {total}, not 1."
                )
    return outcome_count


__all__ = ["MalformedActivityError", "ValidationError", "validate_activities"]
