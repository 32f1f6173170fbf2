"""Activity level data model definitions."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.numbers import to_decimal


class Activity(BaseModel):
    """A project task with a discrete distribution over possible durations.

    Outcome ``i`` means the activity took ``durations[i]`` with probability
    ``probabilities[i]``. The model only normalises values; the outcome-count
    and probability contract is enforced by
    :func:`activity_simulator.core.validator.validate_activities`.
    """

    model_config = ConfigDict(frozen=True)

    activity_number: int = Field(..., description="Display label for the activity")
    durations: Tuple[Decimal, ...] = Field(
        ..., description="Possible durations, positionally paired with probabilities"
    )
    probabilities: Tuple[Decimal, ...] = Field(
        ..., description="Probability of each duration outcome"
    )

    @field_validator("activity_number", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> int:
        """Accept integral strings such as ``"3"`` or ``"3.0"``."""
        if value is None:
            raise ValueError("activity_number cannot be null")
        if isinstance(value, str):
            number = to_decimal(value)
            if number != number.to_integral_value():
                raise ValueError(f"activity_number must be an integer, got {value!r}")
            return int(number)
        return value

    @field_validator("durations", "probabilities", mode="before")
    @classmethod
    def _coerce_decimals(cls, value: Any) -> Tuple[Decimal, ...]:
        if value is None:
            raise ValueError("outcome values cannot be null")
        return tuple(to_decimal(item) for item in value)

    @property
    def outcome_count(self) -> int:
        return len(self.durations)

    def expected_duration(self) -> Decimal:
        """Probability-weighted duration of this activity alone."""
        return sum(
            (d * p for d, p in zip(self.durations, self.probabilities)),
            Decimal(0),
        )
