"""Mixed-radix outcome counter used to enumerate scenarios."""

from __future__ import annotations

from typing import List, Tuple


class OutcomeCounter:
    """N-digit counter in base K, one digit per activity.

    Digit 0 belongs to activity 0 and changes least frequently; digit N-1
    belongs to the last activity and changes on every step. The counter is
    owned by exactly one worker and is never shared.
    """

    def __init__(self, activity_count: int, outcome_count: int) -> None:
        if activity_count < 1:
            raise ValueError("activity_count must be at least 1")
        if outcome_count < 1:
            raise ValueError("outcome_count must be at least 1")
        self.activity_count = activity_count
        self.outcome_count = outcome_count
        self.total = outcome_count ** activity_count
        self._digits: List[int] = [0] * activity_count
        self._index = 0

    @property
    def index(self) -> int:
        """Global scenario index the digits currently spell."""
        return self._index

    @property
    def digits(self) -> Tuple[int, ...]:
        return tuple(self._digits)

    def seed_to(self, global_index: int) -> None:
        """Jump directly to ``global_index`` without replaying prior steps."""
        if not 0 <= global_index < self.total:
            raise IndexError(
                f"Scenario index {global_index} outside [0, {self.total})"
            )
        remainder = global_index
        for position in range(self.activity_count - 1, -1, -1):
            remainder, self._digits[position] = divmod(remainder, self.outcome_count)
        self._index = global_index

    def advance(self) -> None:
        """Increment by one, carrying toward digit 0."""
        if self._index + 1 >= self.total:
            raise IndexError("Counter cannot advance past the final scenario")
        position = self.activity_count - 1
        while position >= 0:
            self._digits[position] += 1
            if self._digits[position] < self.outcome_count:
                break
            self._digits[position] = 0
            position -= 1
        self._index += 1

    def __repr__(self) -> str:
        return f"OutcomeCounter(index={self._index}, digits={self.digits})"


__all__ = ["OutcomeCounter"]
