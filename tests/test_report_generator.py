import json
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

import pandas as pd

from activity_simulator.config import RunSettings
from activity_simulator.engine import ActivitySimulationEngine
from activity_simulator.models.activity import Activity
from activity_simulator.reporting.report_generator import ReportGenerator
from activity_simulator.utils.numbers import format_decimal


def _engine():
    engine = ActivitySimulationEngine(RunSettings(workers=2, executor="thread"))
    engine.set_activities(
        [
            Activity(activity_number=7, durations=[4, 8, 10], probabilities=[0.15, 0.50, 0.35]),
            Activity(activity_number=3, durations=[1, 2, 4], probabilities=[0.25, 0.50, 0.25]),
        ]
    )
    return engine


class FormatDecimalTests(unittest.TestCase):
    def test_strips_trailing_zeros(self) -> None:
        self.assertEqual(format_decimal(Decimal("10.3500")), "10.35")
        self.assertEqual(format_decimal(Decimal("14")), "14")
        self.assertEqual(format_decimal(Decimal("0.037500")), "0.0375")

    def test_rounds_to_eight_places(self) -> None:
        self.assertEqual(format_decimal(Decimal(1) / Decimal(3)), "0.33333333")
        self.assertEqual(format_decimal(Decimal("0.000000001")), "0")


class ReportGeneratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_export_scenarios_writes_ordered_table(self) -> None:
        results = _engine().run_enumeration(include_table=True)
        path = ReportGenerator(self.output_dir).export_scenarios(results)
        frame = pd.read_csv(path, dtype=str)
        self.assertEqual(frame.shape[0], 9)
        self.assertEqual(list(frame.columns[:3]), ["Scenario Combinations", "D(7)", "D(3)"])
        self.assertEqual(list(frame["Scenario Combinations"]), ["00", "01", "02", "10", "11", "12", "20", "21", "22"])
        self.assertEqual(frame.iloc[0]["Expected Probability"], "0.0375")
        self.assertEqual(frame.iloc[0]["Expected Duration"], "0.1875")
        self.assertEqual(frame.iloc[8]["Total Duration"], "14")

    def test_export_requires_table(self) -> None:
        results = _engine().run_enumeration()
        with self.assertRaises(ValueError):
            ReportGenerator(self.output_dir).export_scenarios(results)

    def test_export_summary(self) -> None:
        results = _engine().run_enumeration()
        path = ReportGenerator(self.output_dir).export_summary(results)
        payload = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(payload["expected_duration"], "10.35")
        self.assertEqual(payload["scenario_count"], 9)
        self.assertEqual(payload["activity_numbers"], [7, 3])
        self.assertEqual(payload["worker_ranges"], [[0, 5], [5, 9]])

    def test_export_sampling(self) -> None:
        results = _engine().run_sampling(1_000, seed=1)
        paths = ReportGenerator(self.output_dir, timestamped=True, run_label="run").export_sampling(results)
        self.assertTrue(paths["tally"].exists())
        self.assertEqual(paths["tally"].parent.name, "run")
        tally = pd.read_csv(paths["tally"])
        self.assertEqual(int(tally["occurrences"].sum()), 1_000)


if __name__ == "__main__":
    unittest.main()
