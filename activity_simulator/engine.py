"""High-level orchestration for the activity duration simulator."""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence

import pandas as pd

from .config import RANDOM_ITERATIONS, RunSettings
from .core.aggregator import ExpectedDurationAggregator
from .core.data_loader import ActivityLoader, LoadResult
from .core.partitioner import partition_ranges, scenario_count
from .core.sampling import SAMPLING_MODES, make_rng, sample_duration_tally, sample_scenarios
from .core.validator import ValidationError, validate_activities
from .jobs.pool import ScenarioPool
from .models.activity import Activity
from .models.results import EnumerationResults, SamplingResults

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class ActivitySimulationEngine:
    """Primary entry point for loading activities and computing expected durations."""

    def __init__(self, settings: Optional[RunSettings] = None) -> None:
        self.settings = settings or RunSettings()
        self.activities: List[Activity] = []
        self.outcome_count: Optional[int] = None

    # --------------------------------------------------------------------- Data
    def load_data(self, file_path: str, *, delimiter: str = ",") -> LoadResult:
        """Load activities from a CSV file."""
        result = ActivityLoader(delimiter=delimiter).load_activities(file_path)
        self.activities = list(result.activities)
        self.outcome_count = result.outcome_count
        LOGGER.info("Loaded %d activities from %s", len(self.activities), file_path)
        return result

    def load_dataframe(self, dataframe: pd.DataFrame) -> LoadResult:
        """Load activities from an existing dataframe."""
        result = ActivityLoader().load_activities_from_dataframe(dataframe)
        self.activities = list(result.activities)
        self.outcome_count = result.outcome_count
        return result

    def set_activities(
        self, activities: Sequence[Activity], *, outcome_count: Optional[int] = None
    ) -> None:
        self.activities = list(activities)
        self.outcome_count = outcome_count

    # --------------------------------------------------------------- Execution
    def run_enumeration(
        self,
        *,
        workers: Optional[int] = None,
        executor: Optional[str] = None,
        include_table: Optional[bool] = False,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> EnumerationResults:
        """Enumerate every scenario and return the exact expected duration.

        ``include_table=None`` builds the scenario table only when it fits within
        ``settings.table_row_limit``; ``True`` raises ``OverflowError`` above it.
        """
        settings = self.settings
        workers = settings.workers if workers is None else workers
        executor = settings.executor if executor is None else executor
        activities = self._ready_activities()

        outcome_count = validate_activities(
            activities,
            outcome_count=self.outcome_count,
            probability_tolerance=settings.probability_tolerance,
        )
        total = scenario_count(len(activities), outcome_count, settings.max_scenarios)
        include_table = self._resolve_table(include_table, total)
        ranges = partition_ranges(total, workers)
        LOGGER.info(
            "Enumerating %s scenarios (%d activities x %d outcomes) across %d range(s) [%s]",
            f"{total:,}",
            len(activities),
            outcome_count,
            len(ranges),
            executor,
        )

        started = time.perf_counter()
        activity_numbers = [activity.activity_number for activity in activities]
        aggregator = ExpectedDurationAggregator(
            ranges,
            activity_numbers,
            decimal_precision=settings.decimal_precision,
        )
        pool = ScenarioPool(workers, executor=executor)
        for outcome in pool.run(
            activities,
            outcome_count,
            ranges,
            include_rows=include_table,
            decimal_precision=settings.decimal_precision,
        ):
            aggregator.add(outcome)
            self._notify(
                progress_callback,
                aggregator.completed,
                len(ranges),
                f"Range {outcome.job_range.start:,}-{outcome.job_range.end:,} complete",
            )

        expected = aggregator.finalize()
        table = aggregator.build_table() if include_table else None
        elapsed = time.perf_counter() - started
        LOGGER.info(
            "Expected duration %s from %s scenarios (took %.3f seconds)",
            expected,
            f"{total:,}",
            elapsed,
        )

        metadata = settings.to_metadata()
        metadata.update({"workers": workers, "executor": executor})
        return EnumerationResults(
            expected_duration=expected,
            scenario_count=total,
            activity_count=len(activities),
            outcome_count=outcome_count,
            activity_numbers=activity_numbers,
            ranges=aggregator.range_summaries(),
            elapsed_seconds=elapsed,
            table=table,
            metadata=metadata,
        )

    def run_sampling(
        self,
        iterations: int = RANDOM_ITERATIONS,
        *,
        mode: str = "tally",
        seed: Optional[int] = None,
    ) -> SamplingResults:
        """Estimate the expected duration by random sampling."""
        if mode not in SAMPLING_MODES:
            raise ValueError(f"Unsupported sampling mode: {mode}")
        if iterations < 1:
            raise ValueError("iterations must be positive")
        activities = self._ready_activities()
        validate_activities(
            activities,
            outcome_count=self.outcome_count,
            probability_tolerance=self.settings.probability_tolerance,
        )

        LOGGER.info("Sampling %s iterations in %s mode", f"{iterations:,}", mode)
        started = time.perf_counter()
        rng = make_rng(seed)
        scenarios: List[tuple] = []
        if mode == "tally":
            expected, tally = sample_duration_tally(activities, iterations, rng)
        else:
            expected, scenarios, tally = sample_scenarios(activities, iterations, rng)
        elapsed = time.perf_counter() - started

        return SamplingResults(
            expected_duration=expected,
            iterations=iterations,
            mode=mode,
            seed=seed,
            tally=tally,
            scenarios=scenarios,
            elapsed_seconds=elapsed,
        )

    # ----------------------------------------------------------------- Helpers
    def _ready_activities(self) -> List[Activity]:
        if not self.activities:
            raise ValidationError("No activity data loaded.")
        return self.activities

    def _resolve_table(self, include_table: Optional[bool], total: int) -> bool:
        limit = self.settings.table_row_limit
        if limit is None or total <= limit:
            return include_table is not False
        if include_table:
            raise OverflowError(
                f"Scenario table of {total:,} rows exceeds the table limit of {limit:,}; "
                "run without the table or raise ACTIVITY_SIM_TABLE_ROW_LIMIT"
            )
        if include_table is None:
            LOGGER.warning(
                "Skipping the scenario table: %s rows exceeds the table limit of %s",
                f"{total:,}",
                f"{limit:,}",
            )
        return False

    @staticmethod
    def _notify(
        callback: Optional[ProgressCallback], step: int, total: int, message: str
    ) -> None:
        if callback is None:
            return
        try:
            callback(step, total, message)
        except Exception:  # pragma: no cover
            LOGGER.debug("Progress callback failed", exc_info=True)


__all__ = ["ActivitySimulationEngine", "ProgressCallback"]
