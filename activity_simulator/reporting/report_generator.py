"""Report generation utilities."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from ..models.results import EnumerationResults, SamplingResults
from ..utils.numbers import format_decimal

LOGGER = logging.getLogger(__name__)


def _json_default(obj: object) -> object:
    """JSON serializer that handles decimal/numpy/path objects gracefully."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, (datetime,)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def format_table(table: pd.DataFrame, places: int = 8) -> pd.DataFrame:
    """Render Decimal cells as fixed-point text with trailing zeros stripped."""

    def _render(value: object) -> object:
        if isinstance(value, Decimal):
            return format_decimal(value, places)
        return value

    formatted = table.copy()
    for position in range(formatted.shape[1]):
        formatted.iloc[:, position] = formatted.iloc[:, position].map(_render)
    return formatted


class ReportGenerator:
    """Persist simulator outputs to disk (scenario tables and summaries)."""

    def __init__(
        self,
        output_dir: str | Path = "output",
        *,
        timestamped: bool = False,
        run_label: Optional[str] = None,
    ) -> None:
        base_dir = Path(output_dir)
        base_dir.mkdir(parents=True, exist_ok=True)
        if timestamped:
            run_label = run_label or datetime.utcnow().strftime("run_%Y%m%d_%H%M%S")
            self.output_dir = base_dir / run_label
        else:
            self.output_dir = base_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.base_dir = base_dir
        self.run_label = self.output_dir.name

    # ------------------------------------------------------------------ helpers
    def _write_json(self, payload: Dict[str, object], filename: str) -> Path:
        path = self.output_dir / filename
        with path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, default=_json_default)
        return path

    # ------------------------------------------------------------------ exports
    def export_scenarios(
        self,
        results: EnumerationResults,
        filename: str = "output.csv",
        *,
        places: int = 8,
    ) -> Path:
        """Write the per-scenario table in ascending scenario order."""
        if results.table is None:
            raise ValueError("Scenario table was not requested for this run.")
        path = self.output_dir / filename
        format_table(results.table, places).to_csv(path, index=False)
        LOGGER.info("Wrote %d scenario rows to %s", results.table.shape[0], path)
        return path

    def export_summary(
        self, results: EnumerationResults, filename: str = "summary.json"
    ) -> Path:
        payload = results.summary()
        payload["generated_at"] = datetime.utcnow().isoformat()
        return self._write_json(payload, filename)

    def export_sampling(
        self,
        results: SamplingResults,
        filename: str = "sampling.csv",
        *,
        places: int = 8,
    ) -> Dict[str, Path]:
        """Write the duration tally and a JSON summary of a sampling run."""
        tally_path = self.output_dir / filename
        format_table(results.tally, places).to_csv(tally_path, index=False)
        summary_path = self._write_json(results.summary(), "sampling_summary.json")
        return {"tally": tally_path, "summary": summary_path}


__all__ = ["ReportGenerator", "format_table"]
