"""Combine per-range worker outcomes into the expected project duration."""

from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Dict, List, Sequence

import pandas as pd

from ..models.results import RangeSummary
from .partitioner import JobRange
from .worker import RangeOutcome


def table_columns(activity_numbers: Sequence[int]) -> List[str]:
    """Column layout of the exported scenario table."""
    columns = ["Scenario Combinations"]
    columns += [f"D({number})" for number in activity_numbers]
    columns.append("Total Duration")
    columns += [f"P({number})" for number in activity_numbers]
    columns += ["Expected Probability", "Expected Duration"]
    return columns


class ExpectedDurationAggregator:
    """Single writer for the expected-duration sum.

    Outcomes may arrive in completion order; they are always combined and
    tabulated in ascending range order so results are reproducible.
    """

    def __init__(
        self,
        expected_ranges: Sequence[JobRange],
        activity_numbers: Sequence[int],
        *,
        decimal_precision: int = 50,
    ) -> None:
        self.expected_ranges = list(expected_ranges)
        self.activity_numbers = list(activity_numbers)
        self.decimal_precision = decimal_precision
        self._outcomes: Dict[int, RangeOutcome] = {}

    @property
    def completed(self) -> int:
        return len(self._outcomes)

    def add(self, outcome: RangeOutcome) -> None:
        start = outcome.job_range.start
        if start in self._outcomes:
            raise RuntimeError(
                f"Range starting at {start} was reported more than once"
            )
        if outcome.scenario_count != len(outcome.job_range):
            raise RuntimeError(
                f"Range [{start}, {outcome.job_range.end}) produced "
                f"{outcome.scenario_count} scenarios, expected {len(outcome.job_range)}"
            )
        self._outcomes[start] = outcome

    def _ordered(self) -> List[RangeOutcome]:
        ordered = [self._outcomes[start] for start in sorted(self._outcomes)]
        received = [outcome.job_range for outcome in ordered]
        if received != self.expected_ranges:
            raise RuntimeError(
                "Worker ranges do not match the partition plan; "
                f"received {len(received)} of {len(self.expected_ranges)} ranges"
            )
        return ordered

    def finalize(self) -> Decimal:
        """Sum the partial results once every range has been reported."""
        with localcontext() as ctx:
            ctx.prec = self.decimal_precision
            total = Decimal(0)
            for outcome in self._ordered():
                total += outcome.partial_sum
        return total

    def range_summaries(self) -> List[RangeSummary]:
        return [
            RangeSummary(
                start=outcome.job_range.start,
                end=outcome.job_range.end,
                scenario_count=outcome.scenario_count,
                partial_sum=outcome.partial_sum,
            )
            for outcome in self._ordered()
        ]

    def build_table(self) -> pd.DataFrame:
        """Concatenate worker rows in ascending global scenario order."""
        rows = []
        for outcome in self._ordered():
            if outcome.rows is None:
                raise RuntimeError(
                    f"Range [{outcome.job_range.start}, {outcome.job_range.end}) "
                    "was evaluated without rows"
                )
            rows.extend(outcome.rows)
        return pd.DataFrame(rows, columns=table_columns(self.activity_numbers))


__all__ = ["ExpectedDurationAggregator", "table_columns"]
