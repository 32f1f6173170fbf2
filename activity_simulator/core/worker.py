"""Per-range scenario enumeration and evaluation.

Each worker owns a private :class:`OutcomeCounter` seeded directly to the
start of its range, so workers never share counter state and can run in
threads or separate processes.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from ..models.activity import Activity
from ..models.scenario import Scenario, ScenarioResult
from .counter import OutcomeCounter
from .partitioner import JobRange

ScenarioRow = Tuple[object, ...]

# Scenarios evaluated between checks of the cancel event.
CANCEL_CHECK_INTERVAL = 4096


class RangeCancelled(RuntimeError):
    """A range stopped early because a sibling range failed."""


def label_separator(outcome_count: int) -> str:
    """Digits are concatenated when each fits in one character."""
    return "" if outcome_count <= 10 else "-"


def iter_scenarios(
    job_range: JobRange, activity_count: int, outcome_count: int
) -> Iterator[Scenario]:
    """Yield the scenarios for ``job_range`` in ascending index order."""
    if len(job_range) == 0:
        return
    counter = OutcomeCounter(activity_count, outcome_count)
    counter.seed_to(job_range.start)
    yield Scenario(index=counter.index, outcomes=counter.digits)
    for _ in range(job_range.start + 1, job_range.end):
        counter.advance()
        yield Scenario(index=counter.index, outcomes=counter.digits)


@dataclass
class RangeOutcome:
    """What a worker hands back to the aggregator."""

    job_range: JobRange
    partial_sum: Decimal
    scenario_count: int
    rows: Optional[List[ScenarioRow]] = None


class ScenarioWorker:
    """Enumerate and evaluate every scenario in one index range."""

    def __init__(
        self,
        activities: Sequence[Activity],
        outcome_count: int,
        job_range: JobRange,
        *,
        decimal_precision: int = 50,
    ) -> None:
        self.activities = tuple(activities)
        self.outcome_count = outcome_count
        self.job_range = job_range
        self.decimal_precision = decimal_precision
        self._separator = label_separator(outcome_count)

    def scenarios(self) -> Iterator[Scenario]:
        return iter_scenarios(self.job_range, len(self.activities), self.outcome_count)

    def evaluate(self, scenario: Scenario) -> ScenarioResult:
        durations = []
        probabilities = []
        total = Decimal(0)
        joint = Decimal(1)
        for activity_index, outcome_index in scenario.pairs():
            activity = self.activities[activity_index]
            duration = activity.durations[outcome_index]
            probability = activity.probabilities[outcome_index]
            durations.append(duration)
            probabilities.append(probability)
            total += duration
            joint *= probability
        return ScenarioResult(
            scenario=scenario,
            durations=tuple(durations),
            probabilities=tuple(probabilities),
            total_duration=total,
            joint_probability=joint,
        )

    def _row(self, result: ScenarioResult) -> ScenarioRow:
        return (
            result.scenario.label(self._separator),
            *result.durations,
            result.total_duration,
            *result.probabilities,
            result.joint_probability,
            result.contribution,
        )

    def run(self, include_rows: bool = False, cancel_event: Optional[Any] = None) -> RangeOutcome:
        """Evaluate the whole range and return its partial expected duration.

        ``cancel_event`` is any object with ``is_set()`` (a thread or process
        event). It is polled every ``CANCEL_CHECK_INTERVAL`` scenarios and
        :class:`RangeCancelled` is raised once it is set.
        """
        partial = Decimal(0)
        count = 0
        rows: Optional[List[ScenarioRow]] = [] if include_rows else None
        with localcontext() as ctx:
            ctx.prec = self.decimal_precision
            for scenario in self.scenarios():
                if (
                    cancel_event is not None
                    and count % CANCEL_CHECK_INTERVAL == 0
                    and cancel_event.is_set()
                ):
                    raise RangeCancelled(
                        f"Range [{self.job_range.start}, {self.job_range.end}) cancelled "
                        f"after {count} scenarios"
                    )
                result = self.evaluate(scenario)
                partial += result.contribution
                count += 1
                if rows is not None:
                    rows.append(self._row(result))
        return RangeOutcome(
            job_range=self.job_range,
            partial_sum=partial,
            scenario_count=count,
            rows=rows,
        )


def run_range(
    activities: Sequence[Activity],
    outcome_count: int,
    job_range: JobRange,
    include_rows: bool = False,
    decimal_precision: int = 50,
    cancel_event: Optional[Any] = None,
) -> RangeOutcome:
    """Pool entry point; kept at module level so process pools can pickle it."""
    worker = ScenarioWorker(
        activities,
        outcome_count,
        job_range,
        decimal_precision=decimal_precision,
    )
    return worker.run(include_rows=include_rows, cancel_event=cancel_event)


__all__ = [
    "CANCEL_CHECK_INTERVAL",
    "RangeCancelled",
    "RangeOutcome",
    "ScenarioRow",
    "ScenarioWorker",
    "iter_scenarios",
    "label_separator",
    "run_range",
]
