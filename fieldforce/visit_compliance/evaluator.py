# fieldforce/visit_compliance/evaluator.py
"""
Visit Compliance Evaluation

Turns a visit plan (doctor × delegate × monthly frequency) and the visits
recorded against it into a return index entry for the reporting month:
- visits completed year-to-date (current month excluded) vs expected
- compliance status from last month / month before last
- visits this month and the remaining quota
- inclusion in the "doctors needing a visit" list
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from ..metrics_engine import (
    ComplianceStatus,
    compute_compliance_status,
    compute_global_return_index,
    compute_return_index_percentage,
    compute_visits_expected,
)
from .constants import (
    DEFAULT_OVERDUE_AFTER_DAY,
    PROGRESS_COMPLETED,
    PROGRESS_OVERDUE,
    PROGRESS_PENDING,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisitPlan:
    """One doctor assigned to one delegate with a monthly visit target."""
    id: str
    doctor_id: str
    delegate_id: str
    visit_frequency: int

    @classmethod
    def from_row(cls, row) -> "VisitPlan":
        frequency = row.get('visit_frequency')
        return cls(
            id=row['id'],
            doctor_id=row['doctor_id'],
            delegate_id=row['delegate_id'],
            visit_frequency=int(frequency) if frequency is not None and not pd.isna(frequency) else 0,
        )


@dataclass(frozen=True)
class ReturnIndexEntry:
    """Derived per (doctor, delegate); recomputed on every read."""
    visit_plan_id: str
    doctor_id: str
    delegate_id: str
    visit_frequency: int
    visits_completed: int
    visits_expected: int
    return_index: int
    visits_this_month: int
    visits_last_month: int
    visits_month_before_last: int
    remaining_visits: int
    status: ComplianceStatus

    @property
    def needs_visit(self) -> bool:
        return self.visits_this_month < self.visit_frequency

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['status'] = self.status.value
        data['needs_visit'] = self.needs_visit
        return data


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """(year, month) moved by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _to_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


class VisitComplianceEvaluator:
    """
    Return index calculations for one reporting date.

    Usage:
        evaluator = VisitComplianceEvaluator(as_of=date.today())

        entry = evaluator.evaluate(plan, visit_dates)
        table = evaluator.build_return_index(visit_plans_df, visits_df)
        todo = evaluator.doctors_needing_visits(table)
    """

    def __init__(self, as_of: date = None, overdue_after_day: int = DEFAULT_OVERDUE_AFTER_DAY):
        self.as_of = as_of or date.today()
        self.overdue_after_day = overdue_after_day

    @property
    def current_month(self) -> int:
        return self.as_of.month

    # =========================================================================
    # MONTH WINDOWS
    # =========================================================================

    def month_key(self, delta: int = 0) -> Tuple[int, int]:
        """(year, month) of the reporting month shifted by delta."""
        return shift_month(self.as_of.year, self.as_of.month, delta)

    def history_start(self) -> date:
        """Earliest date any metric reads: month before last, or January 1st."""
        year, month = self.month_key(-2)
        return min(date(year, month, 1), date(self.as_of.year, 1, 1))

    # =========================================================================
    # SINGLE PLAN
    # =========================================================================

    def evaluate(self, plan: VisitPlan, visit_dates: Iterable) -> ReturnIndexEntry:
        """
        Build the return index entry for one visit plan.

        Args:
            plan: The visit plan
            visit_dates: Dates of every visit recorded against the plan
                (any range; out-of-window dates are ignored)
        """
        this_month = self.month_key(0)
        last_month = self.month_key(-1)
        month_before_last = self.month_key(-2)
        year_start = date(self.as_of.year, 1, 1)
        current_month_start = date(this_month[0], this_month[1], 1)

        completed = 0
        counts = {this_month: 0, last_month: 0, month_before_last: 0}

        for value in visit_dates:
            visit_date = _to_date(value)
            if visit_date is None:
                continue
            if year_start <= visit_date < current_month_start:
                completed += 1
            key = (visit_date.year, visit_date.month)
            if key in counts:
                counts[key] += 1

        frequency = plan.visit_frequency
        visits_this_month = counts[this_month]

        return ReturnIndexEntry(
            visit_plan_id=plan.id,
            doctor_id=plan.doctor_id,
            delegate_id=plan.delegate_id,
            visit_frequency=frequency,
            visits_completed=completed,
            visits_expected=compute_visits_expected(frequency, self.current_month),
            return_index=compute_return_index_percentage(completed, frequency, self.current_month),
            visits_this_month=visits_this_month,
            visits_last_month=counts[last_month],
            visits_month_before_last=counts[month_before_last],
            remaining_visits=max(0, frequency - visits_this_month),
            status=compute_compliance_status(counts[last_month], counts[month_before_last]),
        )

    def monthly_progress_status(self, visits_this_month: int, visit_frequency: int) -> str:
        """completed / overdue (past the cut-off day) / pending."""
        if visits_this_month >= visit_frequency:
            return PROGRESS_COMPLETED
        if self.as_of.day > self.overdue_after_day:
            return PROGRESS_OVERDUE
        return PROGRESS_PENDING

    # =========================================================================
    # TABLES
    # =========================================================================

    def build_return_index(
        self,
        visit_plans_df: pd.DataFrame,
        visits_df: pd.DataFrame
    ) -> pd.DataFrame:
        """
        Return index table, one row per visit plan.

        Args:
            visit_plans_df: id, doctor_id, delegate_id, visit_frequency and
                any descriptive columns (doctor_name, specialty, brick_name...)
            visits_df: visit_plan_id, visit_date

        Returns:
            visit_plans_df columns plus every ReturnIndexEntry field,
            needs_visit and progress_status
        """
        if visit_plans_df is None or visit_plans_df.empty:
            return pd.DataFrame()

        dates_by_plan: Dict[str, List] = {}
        if visits_df is not None and not visits_df.empty:
            for plan_id, group in visits_df.groupby('visit_plan_id'):
                dates_by_plan[plan_id] = group['visit_date'].tolist()

        records = []
        for row in visit_plans_df.to_dict('records'):
            plan = VisitPlan.from_row(row)
            entry = self.evaluate(plan, dates_by_plan.get(plan.id, []))
            record = {k: v for k, v in row.items() if k not in ('id', 'visit_frequency')}
            record.update(entry.to_dict())
            record['progress_status'] = self.monthly_progress_status(
                entry.visits_this_month, entry.visit_frequency
            )
            records.append(record)

        result = pd.DataFrame(records)
        logger.debug(f"Return index computed for {len(result)} visit plans")
        return result

    @staticmethod
    def doctors_needing_visits(return_index_df: pd.DataFrame) -> pd.DataFrame:
        """Rows whose monthly quota is not met yet (visits this month < frequency)."""
        if return_index_df.empty:
            return return_index_df
        mask = return_index_df['visits_this_month'] < return_index_df['visit_frequency']
        return return_index_df[mask]

    def global_return_index(self, visit_plans_df: pd.DataFrame, visits_df: pd.DataFrame) -> int:
        """Header figure: visits this year over Σ(frequency × current month)."""
        if visit_plans_df is None or visit_plans_df.empty:
            return 0

        total_visits = 0
        if visits_df is not None and not visits_df.empty:
            plan_ids = set(visit_plans_df['id'])
            dates = pd.to_datetime(
                visits_df.loc[visits_df['visit_plan_id'].isin(plan_ids), 'visit_date'],
                errors='coerce'
            )
            total_visits = int(((dates.dt.year == self.as_of.year) & (dates <= pd.Timestamp(self.as_of))).sum())

        frequencies = visit_plans_df['visit_frequency'].fillna(0).astype(int).tolist()
        return compute_global_return_index(total_visits, frequencies, self.current_month)

    @staticmethod
    def status_counts(return_index_df: pd.DataFrame) -> Dict[str, int]:
        """Number of doctors per compliance status."""
        counts = {status.value: 0 for status in ComplianceStatus}
        if not return_index_df.empty:
            for status, count in return_index_df['status'].value_counts().items():
                counts[status] = int(count)
        return counts
