"""Scenario data models."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Tuple


@dataclass(frozen=True)
class Scenario:
    """One complete outcome assignment, one outcome index per activity.

    ``outcomes[j]`` is the outcome chosen for the activity at position ``j``;
    ``index`` is the base-K number those digits spell.
    """

    index: int
    outcomes: Tuple[int, ...]

    def pairs(self) -> Iterator[Tuple[int, int]]:
        """Yield ``(activity_index, outcome_index)`` pairs."""
        return enumerate(self.outcomes)

    def label(self, separator: str = "") -> str:
        return separator.join(str(outcome) for outcome in self.outcomes)


@dataclass(frozen=True)
class ScenarioResult:
    """Derived duration and probability figures for one scenario."""

    scenario: Scenario
    durations: Tuple[Decimal, ...]
    probabilities: Tuple[Decimal, ...]
    total_duration: Decimal
    joint_probability: Decimal

    @property
    def contribution(self) -> Decimal:
        """Expected duration contribution (duration x probability)."""
        return self.total_duration * self.joint_probability


__all__ = ["Scenario", "ScenarioResult"]
