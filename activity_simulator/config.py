"""Runtime configuration for the activity duration simulator.

Values are read from environment variables so the CLI, background jobs and
tests can override them without editing code. Nothing in the core reads these
module constants directly; the engine resolves them into a ``RunSettings``
instance that is passed explicitly into each run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Optional


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    if value.strip().lower() in {"none", "off"}:
        return None
    return float(value)


MAX_SCENARIOS = _env_int("ACTIVITY_SIM_MAX_SCENARIOS", 50_000_000)
DEFAULT_WORKERS = _env_int("ACTIVITY_SIM_WORKERS", os.cpu_count() or 1)
DEFAULT_EXECUTOR = os.environ.get("ACTIVITY_SIM_EXECUTOR", "process")
DECIMAL_PRECISION = _env_int("ACTIVITY_SIM_DECIMAL_PRECISION", 50)
PROBABILITY_TOLERANCE = _env_float("ACTIVITY_SIM_PROBABILITY_TOLERANCE", 1e-6)
RANDOM_ITERATIONS = _env_int("ACTIVITY_SIM_RANDOM_ITERATIONS", 1_000_000)
TABLE_ROW_LIMIT = _env_int("ACTIVITY_SIM_TABLE_ROW_LIMIT", 1_000_000)
OUTPUT_ROOT = os.environ.get("APP_OUTPUT_ROOT", "output")

EXECUTORS = ("process", "thread", "serial")


@dataclass
class RunSettings:
    """Parameters for a single enumeration or sampling run."""

    workers: int = DEFAULT_WORKERS
    executor: str = DEFAULT_EXECUTOR
    max_scenarios: Optional[int] = MAX_SCENARIOS
    decimal_precision: int = DECIMAL_PRECISION
    probability_tolerance: Optional[float] = PROBABILITY_TOLERANCE
    table_row_limit: Optional[int] = TABLE_ROW_LIMIT

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.executor not in EXECUTORS:
            raise ValueError(
                f"Unsupported executor {self.executor!r}; choose one of {', '.join(EXECUTORS)}"
            )
        if self.decimal_precision < 1:
            raise ValueError("decimal_precision must be positive")
        if self.table_row_limit is not None and self.table_row_limit < 0:
            raise ValueError("table_row_limit cannot be negative")

    @classmethod
    def from_env(cls) -> "RunSettings":
        """Build settings from the current environment."""
        return cls(
            workers=_env_int("ACTIVITY_SIM_WORKERS", os.cpu_count() or 1),
            executor=os.environ.get("ACTIVITY_SIM_EXECUTOR", "process"),
            max_scenarios=_env_int("ACTIVITY_SIM_MAX_SCENARIOS", 50_000_000),
            decimal_precision=_env_int("ACTIVITY_SIM_DECIMAL_PRECISION", 50),
            probability_tolerance=_env_float("ACTIVITY_SIM_PROBABILITY_TOLERANCE", 1e-6),
            table_row_limit=_env_int("ACTIVITY_SIM_TABLE_ROW_LIMIT", 1_000_000),
        )

    def to_metadata(self) -> Dict[str, object]:
        """Serialise into result metadata."""
        return {
            "workers": int(self.workers),
            "executor": self.executor,
            "max_scenarios": self.max_scenarios,
            "decimal_precision": int(self.decimal_precision),
            "probability_tolerance": self.probability_tolerance,
            "table_row_limit": self.table_row_limit,
        }


__all__ = [
    "DECIMAL_PRECISION",
    "DEFAULT_EXECUTOR",
    "DEFAULT_WORKERS",
    "EXECUTORS",
    "MAX_SCENARIOS",
    "OUTPUT_ROOT",
    "PROBABILITY_TOLERANCE",
    "RANDOM_ITERATIONS",
    "RunSettings",
    "TABLE_ROW_LIMIT",
]
