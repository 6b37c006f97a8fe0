"""
Tests for the visit compliance evaluator and the doctor status bird.
"""
import pytest
import pandas as pd
import sys
from datetime import date, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from fieldforce.metrics_engine import ComplianceStatus
from fieldforce.storage import JsonFileStore, MemoryStore
from fieldforce.visit_compliance import (
    BIRD_CYCLE,
    DoctorStatusBird,
    VisitComplianceEvaluator,
    VisitPlan,
)
from fieldforce.visit_compliance.evaluator import shift_month


@pytest.fixture
def plan():
    return VisitPlan(id="vp-1", doctor_id="doc-1", delegate_id="del-1", visit_frequency=2)


@pytest.fixture
def plans_df():
    return pd.DataFrame([
        {'id': 'vp-1', 'doctor_id': 'doc-1', 'delegate_id': 'del-1', 'visit_frequency': 2,
         'doctor_name': 'Dr. Amrani'},
        {'id': 'vp-2', 'doctor_id': 'doc-2', 'delegate_id': 'del-1', 'visit_frequency': 1,
         'doctor_name': 'Dr. Benali'},
    ])


@pytest.fixture
def visits_df():
    return pd.DataFrame([
        {'visit_plan_id': 'vp-1', 'visit_date': '2024-01-15'},
        {'visit_plan_id': 'vp-1', 'visit_date': '2024-02-10'},
        {'visit_plan_id': 'vp-1', 'visit_date': '2024-02-20'},
        {'visit_plan_id': 'vp-1', 'visit_date': '2024-03-05'},
    ])


class TestShiftMonth:
    """Month arithmetic across year boundaries."""

    @pytest.mark.parametrize("year,month,delta,expected", [
        (2024, 3, -1, (2024, 2)),
        (2025, 1, -1, (2024, 12)),
        (2025, 2, -2, (2024, 12)),
        (2024, 12, 1, (2025, 1)),
    ])
    def test_shift(self, year, month, delta, expected):
        """Shifting wraps the year."""
        assert shift_month(year, month, delta) == expected


class TestEvaluate:
    """Return index entry for a single visit plan."""

    def test_march_example(self, plan):
        """3 of 4 expected visits, visited in February, one left this month."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        entry = evaluator.evaluate(plan, [
            date(2024, 1, 15), date(2024, 2, 10), date(2024, 2, 20), date(2024, 3, 5),
        ])

        assert entry.visits_completed == 3
        assert entry.visits_expected == 4
        assert entry.return_index == 75
        assert entry.status == ComplianceStatus.GREEN
        assert entry.visits_this_month == 1
        assert entry.remaining_visits == 1
        assert entry.needs_visit

    def test_current_month_not_counted_as_completed(self, plan):
        """Visits of the reporting month only count toward this month's quota."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        entry = evaluator.evaluate(plan, [date(2024, 3, 1), date(2024, 3, 2)])

        assert entry.visits_completed == 0
        assert entry.return_index == 0
        assert entry.remaining_visits == 0
        assert not entry.needs_visit

    def test_january_visit_in_december_is_green(self, plan):
        """Last month of a January report is December of the previous year."""
        evaluator = VisitComplianceEvaluator(as_of=date(2025, 1, 10))
        entry = evaluator.evaluate(plan, [date(2024, 12, 5)])

        assert entry.status == ComplianceStatus.GREEN
        assert entry.return_index == 0
        assert entry.visits_completed == 0

    def test_february_visit_in_december_is_yellow(self, plan):
        """Month before last crosses the year boundary too."""
        evaluator = VisitComplianceEvaluator(as_of=date(2025, 2, 3))
        entry = evaluator.evaluate(plan, [date(2024, 12, 20)])

        assert entry.status == ComplianceStatus.YELLOW

    def test_no_visits_is_red(self, plan):
        """Nothing recorded: red, index 0, full quota remaining."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 6, 1))
        entry = evaluator.evaluate(plan, [])

        assert entry.status == ComplianceStatus.RED
        assert entry.return_index == 0
        assert entry.remaining_visits == 2

    def test_accepts_strings_and_datetimes(self, plan):
        """Dates from the database may be strings or datetimes; junk is skipped."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        entry = evaluator.evaluate(plan, ['2024-02-10', datetime(2024, 1, 3, 9, 30), None, 'not a date'])

        assert entry.visits_completed == 2
        assert entry.visits_last_month == 1

    def test_overachiever_exceeds_100(self):
        """Index is not clamped."""
        plan = VisitPlan(id="vp", doctor_id="d", delegate_id="x", visit_frequency=1)
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 2, 15))
        entry = evaluator.evaluate(plan, [date(2024, 1, d) for d in (3, 10, 17)])

        assert entry.return_index == 300

    def test_to_dict(self, plan):
        """Status is exported as its string value with the needs_visit flag."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        data = evaluator.evaluate(plan, []).to_dict()

        assert data['status'] == 'red'
        assert data['needs_visit'] is True


class TestProgressAndHistory:
    """Monthly progress status and history window."""

    @pytest.mark.parametrize("day,done,expected", [
        (10, 2, "completed"),
        (25, 3, "completed"),
        (10, 1, "pending"),
        (20, 1, "pending"),
        (21, 1, "overdue"),
    ])
    def test_progress_status(self, day, done, expected):
        """Unmet plans turn overdue after the cut-off day."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 5, day), overdue_after_day=20)
        assert evaluator.monthly_progress_status(done, 2) == expected

    def test_history_start_mid_year(self):
        """From June the window starts on January 1st."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 6, 15))
        assert evaluator.history_start() == date(2024, 1, 1)

    def test_history_start_january(self):
        """In January the window reaches back into November."""
        evaluator = VisitComplianceEvaluator(as_of=date(2025, 1, 10))
        assert evaluator.history_start() == date(2024, 11, 1)


class TestTables:
    """DataFrame level helpers used by the dashboard."""

    def test_build_return_index(self, plans_df, visits_df):
        """One row per plan with descriptive columns kept."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        table = evaluator.build_return_index(plans_df, visits_df)

        assert len(table) == 2
        first = table[table['visit_plan_id'] == 'vp-1'].iloc[0]
        assert first['doctor_name'] == 'Dr. Amrani'
        assert first['return_index'] == 75
        assert first['status'] == 'green'
        assert first['progress_status'] == 'pending'

        second = table[table['visit_plan_id'] == 'vp-2'].iloc[0]
        assert second['status'] == 'red'
        assert second['visits_this_month'] == 0

    def test_empty_plans(self, visits_df):
        """No plans gives an empty table."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        assert evaluator.build_return_index(pd.DataFrame(), visits_df).empty

    def test_doctors_needing_visits(self, plans_df, visits_df):
        """Both doctors still miss visits this month."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        table = evaluator.build_return_index(plans_df, visits_df)
        todo = evaluator.doctors_needing_visits(table)

        assert set(todo['visit_plan_id']) == {'vp-1', 'vp-2'}

    def test_quota_met_is_not_listed(self, plans_df):
        """A doctor visited as often as planned drops off the list."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        visits = pd.DataFrame([{'visit_plan_id': 'vp-2', 'visit_date': '2024-03-04'}])
        todo = evaluator.doctors_needing_visits(evaluator.build_return_index(plans_df, visits))

        assert 'vp-2' not in set(todo['visit_plan_id'])

    def test_global_return_index(self, plans_df, visits_df):
        """4 visits over (2 + 1) × 3 expected."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        assert evaluator.global_return_index(plans_df, visits_df) == 44

    def test_status_counts(self, plans_df, visits_df):
        """Every status is present in the counts."""
        evaluator = VisitComplianceEvaluator(as_of=date(2024, 3, 18))
        counts = evaluator.status_counts(evaluator.build_return_index(plans_df, visits_df))

        assert counts == {'green': 1, 'yellow': 0, 'red': 1}


class TestDoctorStatusBird:
    """Per-doctor marker cycling grey → yellow → green."""

    def test_default_is_grey(self):
        """Unknown doctors start grey."""
        birds = DoctorStatusBird(MemoryStore())
        assert birds.get("doc-1") == "grey"

    def test_cycle_wraps(self):
        """Three clicks bring the bird back to grey."""
        birds = DoctorStatusBird(MemoryStore())
        seen = [birds.cycle("doc-1") for _ in range(3)]

        assert seen == ["yellow", "green", "grey"]
        assert BIRD_CYCLE == ["grey", "yellow", "green"]

    def test_doctors_are_independent(self):
        """Cycling one doctor leaves the others alone."""
        birds = DoctorStatusBird(MemoryStore())
        birds.cycle("doc-1")

        assert birds.get("doc-1") == "yellow"
        assert birds.get("doc-2") == "grey"

    def test_invalid_stored_value_reads_grey(self):
        """Garbage in the store falls back to grey."""
        store = MemoryStore({"doctor-bird-statuses": {"doc-1": "purple"}})
        assert DoctorStatusBird(store).get("doc-1") == "grey"

    def test_json_store_persists(self, tmp_path):
        """A new instance on the same file sees earlier clicks."""
        path = tmp_path / "birds.json"
        DoctorStatusBird(JsonFileStore(path)).cycle("doc-1")

        assert DoctorStatusBird(JsonFileStore(path)).get("doc-1") == "yellow"

    def test_json_store_ignores_corrupt_file(self, tmp_path):
        """An unreadable file behaves like an empty store."""
        path = tmp_path / "birds.json"
        path.write_text("{not json", encoding="utf-8")

        assert DoctorStatusBird(JsonFileStore(path)).get("doc-1") == "grey"

    def test_color_and_label(self):
        """Unknown statuses render like grey."""
        assert DoctorStatusBird.color("nope") == DoctorStatusBird.color("grey")
        assert DoctorStatusBird.label("green") == "Adult goldfinch"
