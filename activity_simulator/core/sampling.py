"""Random-sampling estimate of the expected project duration.

Each trial rolls one uniform value per activity and picks the first outcome
whose cumulative probability reaches the roll, like reading a pie chart. The
last outcome absorbs any rounding shortfall in the cumulative sum.
"""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..models.activity import Activity

SAMPLING_MODES = ("tally", "scenarios")


def _cumulative_thresholds(activities: Sequence[Activity]) -> np.ndarray:
    """Matrix of cumulative probabilities, shape (N, K)."""
    probabilities = np.array(
        [[float(p) for p in activity.probabilities] for activity in activities],
        dtype=float,
    )
    return np.cumsum(probabilities, axis=1)


def draw_outcomes(
    activities: Sequence[Activity],
    draws: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Return a ``(draws, N)`` matrix of sampled outcome indices."""
    if draws < 1:
        raise ValueError("draws must be positive")
    thresholds = _cumulative_thresholds(activities)
    outcome_count = thresholds.shape[1]
    rolls = rng.random((draws, len(activities)))
    # Count thresholds strictly below the roll: first index with roll <= cumulative.
    chosen = (rolls[:, :, None] > thresholds[None, :, :]).sum(axis=2)
    return np.minimum(chosen, outcome_count - 1)


def _scenario_durations(
    activities: Sequence[Activity], outcomes: np.ndarray
) -> List[Decimal]:
    totals: List[Decimal] = []
    for row in outcomes:
        total = Decimal(0)
        for activity, outcome_index in zip(activities, row):
            total += activity.durations[int(outcome_index)]
        totals.append(total)
    return totals


def _tally_frame(counts: Counter, iterations: int) -> pd.DataFrame:
    rows = [
        {
            "duration": duration,
            "occurrences": occurrences,
            "proportion": Decimal(occurrences) / Decimal(iterations),
        }
        for duration, occurrences in sorted(counts.items())
    ]
    return pd.DataFrame(rows, columns=["duration", "occurrences", "proportion"])


def sample_duration_tally(
    activities: Sequence[Activity],
    iterations: int,
    rng: np.random.Generator,
    *,
    batch_size: int = 100_000,
) -> Tuple[Decimal, pd.DataFrame]:
    """Tally total durations across ``iterations`` trials.

    Returns the estimate and a table of occurrences per distinct duration,
    ordered by duration.
    """
    if iterations < 1:
        raise ValueError("iterations must be positive")
    counts: Counter = Counter()
    remaining = iterations
    while remaining > 0:
        size = min(batch_size, remaining)
        outcomes = draw_outcomes(activities, size, rng)
        counts.update(_scenario_durations(activities, outcomes))
        remaining -= size

    tally = _tally_frame(counts, iterations)
    expected = sum(
        (duration * Decimal(occurrences) for duration, occurrences in counts.items()),
        Decimal(0),
    ) / Decimal(iterations)
    return expected, tally


def sample_scenarios(
    activities: Sequence[Activity],
    draws: int,
    rng: np.random.Generator,
) -> Tuple[Decimal, List[Tuple[int, ...]], pd.DataFrame]:
    """Draw ``draws`` complete scenarios and average their total durations."""
    outcomes = draw_outcomes(activities, draws, rng)
    totals = _scenario_durations(activities, outcomes)
    expected = sum(totals, Decimal(0)) / Decimal(draws)
    scenarios = [tuple(int(value) for value in row) for row in outcomes]
    return expected, scenarios, _tally_frame(Counter(totals), draws)


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(seed)


__all__ = [
    "SAMPLING_MODES",
    "draw_outcomes",
    "make_rng",
    "sample_duration_tally",
    "sample_scenarios",
]
