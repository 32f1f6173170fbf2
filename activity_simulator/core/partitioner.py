"""Split the scenario index space into contiguous worker ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

# Largest scenario index representable as a signed 64-bit integer.
INDEX_LIMIT = 2 ** 63 - 1


@dataclass(frozen=True)
class JobRange:
    """Half-open range ``[start, end)`` of global scenario indices."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid scenario range [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start


def scenario_count(
    activity_count: int,
    outcome_count: int,
    max_scenarios: Optional[int] = None,
) -> int:
    """Return K^N exactly, or raise ``OverflowError`` past the allowed limit."""
    if activity_count < 1 or outcome_count < 1:
        raise ValueError("activity_count and outcome_count must be at least 1")
    limit = INDEX_LIMIT if max_scenarios is None else min(int(max_scenarios), INDEX_LIMIT)
    total = 1
    for _ in range(activity_count):
        total *= outcome_count
        if total > limit:
            raise OverflowError(
                f"{outcome_count}^{activity_count} scenarios exceeds the limit of {limit:,}"
            )
    return total


def partition_ranges(total: int, workers: int) -> List[JobRange]:
    """Divide ``[0, total)`` into at most ``workers`` contiguous ranges."""
    if workers < 1:
        raise ValueError("workers must be at least 1")
    if total < 0:
        raise ValueError("total must be non-negative")
    if total == 0:
        return []
    if total <= workers:
        return [JobRange(0, total)]

    job_size = -(-total // workers)
    ranges: List[JobRange] = []
    start = 0
    while start < total:
        end = min(start + job_size, total)
        ranges.append(JobRange(start, end))
        start = end
    return ranges


__all__ = ["INDEX_LIMIT", "JobRange", "partition_ranges", "scenario_count"]
