import threading
import time
import unittest
from decimal import Decimal
from unittest import mock

from activity_simulator.config import RunSettings
from activity_simulator.core.validator import MalformedActivityError, ValidationError
from activity_simulator.core.worker import RangeCancelled, run_range
from activity_simulator.engine import ActivitySimulationEngine
from activity_simulator.models.activity import Activity


def _fixture_activities():
    return [
        Activity(activity_number=1, durations=[4, 8, 10], probabilities=[0.15, 0.50, 0.35]),
        Activity(activity_number=2, durations=[1, 2, 4], probabilities=[0.25, 0.50, 0.25]),
    ]


def _wider_activities():
    return [
        Activity(
            activity_number=10 + position,
            durations=[position + 1, position + 3, 2 * position + 7],
            probabilities=["0.2", "0.45", "0.35"],
        )
        for position in range(7)
    ]


class EnumerationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = ActivitySimulationEngine(RunSettings(workers=1, executor="serial"))
        self.engine.set_activities(_fixture_activities())

    def test_fixture_expected_duration_is_exact(self) -> None:
        results = self.engine.run_enumeration()
        self.assertEqual(results.scenario_count, 9)
        self.assertEqual(results.expected_duration, Decimal("10.35"))

    def test_expected_duration_matches_sum_of_activity_expectations(self) -> None:
        activities = _wider_activities()
        self.engine.set_activities(activities)
        results = self.engine.run_enumeration(workers=4, executor="thread")
        expected = sum((a.expected_duration() for a in activities), Decimal(0))
        self.assertEqual(results.expected_duration, expected)
        self.assertEqual(results.scenario_count, 3 ** 7)

    def test_worker_count_does_not_change_result(self) -> None:
        self.engine.set_activities(_wider_activities())
        single = self.engine.run_enumeration(workers=1, executor="thread", include_table=True)
        many = self.engine.run_enumeration(workers=8, executor="thread", include_table=True)
        self.assertEqual(single.expected_duration, many.expected_duration)
        self.assertEqual(len(single.ranges), 1)
        self.assertEqual(len(many.ranges), 8)
        self.assertTrue(single.table.equals(many.table))
        labels = list(many.table["Scenario Combinations"])
        self.assertEqual(len(set(labels)), 3 ** 7)
        self.assertEqual(labels, sorted(labels))

    def test_process_pool_matches_serial(self) -> None:
        serial = self.engine.run_enumeration()
        spawned = self.engine.run_enumeration(workers=2, executor="process", include_table=True)
        self.assertEqual(spawned.expected_duration, serial.expected_duration)
        self.assertEqual(spawned.table.shape[0], 9)

    def test_table_layout_and_order(self) -> None:
        results = self.engine.run_enumeration(workers=3, executor="thread", include_table=True)
        table = results.table
        self.assertEqual(
            list(table.columns),
            [
                "Scenario Combinations",
                "D(1)",
                "D(2)",
                "Total Duration",
                "P(1)",
                "P(2)",
                "Expected Probability",
                "Expected Duration",
            ],
        )
        self.assertEqual(table.iloc[0]["Scenario Combinations"], "00")
        self.assertEqual(table.iloc[-1]["Scenario Combinations"], "22")
        self.assertEqual(table.iloc[-1]["Total Duration"], Decimal("14"))
        self.assertEqual(results.probability_mass, Decimal("1"))
        self.assertEqual(sum(table["Expected Duration"], Decimal(0)), Decimal("10.35"))

    def test_partial_sums_add_up(self) -> None:
        results = self.engine.run_enumeration(workers=4, executor="thread")
        self.assertEqual(
            sum((r.partial_sum for r in results.ranges), Decimal(0)),
            results.expected_duration,
        )
        self.assertEqual([(r.start, r.end) for r in results.ranges], [(0, 3), (3, 6), (6, 9)])

    def test_progress_callback_reports_each_range(self) -> None:
        calls = []
        self.engine.run_enumeration(
            workers=3,
            executor="thread",
            progress_callback=lambda step, total, message: calls.append((step, total)),
        )
        self.assertEqual(sorted(calls), [(1, 3), (2, 3), (3, 3)])

    def test_no_activities_loaded(self) -> None:
        engine = ActivitySimulationEngine(RunSettings(workers=1, executor="serial"))
        with self.assertRaises(ValidationError):
            engine.run_enumeration()


class FailureTests(unittest.TestCase):
    def test_short_probability_list_is_rejected_before_enumeration(self) -> None:
        activities = _fixture_activities()
        activities[1] = Activity(activity_number=2, durations=[1, 2, 4], probabilities=[0.5, 0.5])
        engine = ActivitySimulationEngine(RunSettings(workers=2, executor="thread"))
        engine.set_activities(activities)
        with mock.patch("activity_simulator.engine.ScenarioPool.run") as pool_run:
            with self.assertRaises(MalformedActivityError):
                engine.run_enumeration(include_table=True)
        pool_run.assert_not_called()

    def test_overflow_raised_before_any_worker_starts(self) -> None:
        engine = ActivitySimulationEngine(
            RunSettings(workers=2, executor="thread", max_scenarios=100)
        )
        engine.set_activities(_wider_activities())
        with mock.patch("activity_simulator.engine.ScenarioPool.run") as pool_run:
            with self.assertRaises(OverflowError):
                engine.run_enumeration()
        pool_run.assert_not_called()

    def test_worker_error_cancels_running_siblings_promptly(self) -> None:
        engine = ActivitySimulationEngine(RunSettings(workers=3, executor="thread"))
        engine.set_activities(_fixture_activities())
        all_started = threading.Barrier(3)
        sibling_finished = threading.Semaphore(0)
        sibling_saw_cancel = []

        def fake_run_range(activities, outcome_count, job_range, include_rows, precision, cancel_event):
            all_started.wait(timeout=2)
            if job_range.start == 0:
                raise ArithmeticError("boom")
            try:
                sibling_saw_cancel.append(cancel_event.wait(5))
                raise RangeCancelled(f"range {job_range.start} cancelled")
            finally:
                sibling_finished.release()

        with mock.patch("activity_simulator.jobs.pool.run_range", side_effect=fake_run_range):
            started = time.perf_counter()
            with self.assertRaises(ArithmeticError):
                engine.run_enumeration()
            elapsed = time.perf_counter() - started

        self.assertLess(elapsed, 1.0)
        for _ in range(2):
            self.assertTrue(sibling_finished.acquire(timeout=2))
        self.assertEqual(sibling_saw_cancel, [True, True])

    def test_failure_does_not_wait_for_uncooperative_sibling(self) -> None:
        engine = ActivitySimulationEngine(RunSettings(workers=2, executor="thread"))
        engine.set_activities(_fixture_activities())

        def fake_run_range(activities, outcome_count, job_range, include_rows, precision, cancel_event):
            if job_range.start == 0:
                raise ArithmeticError("boom")
            time.sleep(1.5)
            return run_range(activities, outcome_count, job_range, include_rows, precision)

        with mock.patch("activity_simulator.jobs.pool.run_range", side_effect=fake_run_range):
            started = time.perf_counter()
            with self.assertRaises(ArithmeticError):
                engine.run_enumeration()
            self.assertLess(time.perf_counter() - started, 1.0)

    def test_zero_workers_is_rejected(self) -> None:
        engine = ActivitySimulationEngine(RunSettings(workers=2, executor="thread"))
        engine.set_activities(_fixture_activities())
        with self.assertRaises(ValueError):
            engine.run_enumeration(workers=0)
        with self.assertRaises(ValueError):
            engine.run_enumeration(executor="")

    def test_known_outcome_count_is_used_for_validation(self) -> None:
        activities = _fixture_activities()
        activities[0] = Activity(activity_number=1, durations=[4, 8], probabilities=[0.5, 0.5])
        engine = ActivitySimulationEngine(RunSettings(workers=1, executor="serial"))
        engine.set_activities(activities, outcome_count=3)
        with self.assertRaises(MalformedActivityError) as ctx:
            engine.run_enumeration()
        self.assertIn("Activity 1 (row 1)", str(ctx.exception))


class TableLimitTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = ActivitySimulationEngine(
            RunSettings(workers=2, executor="thread", table_row_limit=5)
        )
        self.engine.set_activities(_fixture_activities())

    def test_requested_table_above_limit_fails_before_workers_start(self) -> None:
        with mock.patch("activity_simulator.engine.ScenarioPool.run") as pool_run:
            with self.assertRaises(OverflowError) as ctx:
                self.engine.run_enumeration(include_table=True)
        pool_run.assert_not_called()
        self.assertIn("table limit", str(ctx.exception))

    def test_automatic_table_is_skipped_above_limit(self) -> None:
        with self.assertLogs("activity_simulator.engine", level="WARNING"):
            results = self.engine.run_enumeration(include_table=None)
        self.assertIsNone(results.table)
        self.assertEqual(results.expected_duration, Decimal("10.35"))

    def test_automatic_table_is_built_within_limit(self) -> None:
        self.engine.settings.table_row_limit = 9
        results = self.engine.run_enumeration(include_table=None)
        self.assertEqual(results.table.shape[0], 9)


if __name__ == "__main__":
    unittest.main()
