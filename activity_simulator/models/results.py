"""Result data models for reporting."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field


class RangeSummary(BaseModel):
    """Partial result contributed by one worker range."""

    start: int = Field(..., ge=0, description="First global scenario index (inclusive)")
    end: int = Field(..., ge=0, description="Last global scenario index (exclusive)")
    scenario_count: int = Field(..., ge=0)
    partial_sum: Decimal = Field(..., description="Sum of duration x probability over the range")


class EnumerationResults(BaseModel):
    """Outcome of an exhaustive enumeration run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    expected_duration: Decimal = Field(..., description="Probability-weighted total duration")
    scenario_count: int = Field(..., ge=0, description="Number of scenarios enumerated (K^N)")
    activity_count: int = Field(..., ge=1)
    outcome_count: int = Field(..., ge=1)
    activity_numbers: List[int] = Field(default_factory=list)
    ranges: List[RangeSummary] = Field(
        default_factory=list, description="Per-worker ranges in ascending order"
    )
    elapsed_seconds: float = Field(default=0.0, ge=0.0)
    table: Optional[pd.DataFrame] = Field(
        default=None,
        description="Per-scenario rows in ascending global index order (optional)",
    )
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def probability_mass(self) -> Decimal:
        """Total joint probability enumerated, available when the table was built."""
        if self.table is None or self.table.empty:
            raise ValueError("Scenario table was not requested for this run.")
        return sum(self.table["Expected Probability"], Decimal(0))

    def summary(self) -> Dict[str, Any]:
        return {
            "expected_duration": str(self.expected_duration),
            "scenario_count": self.scenario_count,
            "activity_count": self.activity_count,
            "outcome_count": self.outcome_count,
            "activity_numbers": list(self.activity_numbers),
            "worker_ranges": [[r.start, r.end] for r in self.ranges],
            "elapsed_seconds": round(self.elapsed_seconds, 6),
            "metadata": dict(self.metadata),
        }


class SamplingResults(BaseModel):
    """Outcome of a random-sampling run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    expected_duration: Decimal = Field(..., description="Sampled estimate of the expected duration")
    iterations: int = Field(..., ge=1)
    mode: str = Field(..., description="'tally' or 'scenarios'")
    seed: Optional[int] = Field(default=None)
    tally: pd.DataFrame = Field(
        ..., description="Columns ['duration', 'occurrences', 'proportion'] ordered by duration"
    )
    scenarios: List[Tuple[int, ...]] = Field(
        default_factory=list, description="Drawn outcome indices (scenario mode only)"
    )
    elapsed_seconds: float = Field(default=0.0, ge=0.0)

    def summary(self) -> Dict[str, Any]:
        return {
            "expected_duration": str(self.expected_duration),
            "iterations": self.iterations,
            "mode": self.mode,
            "seed": self.seed,
            "distinct_durations": int(self.tally.shape[0]),
            "elapsed_seconds": round(self.elapsed_seconds, 6),
        }
