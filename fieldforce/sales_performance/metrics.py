# fieldforce/sales_performance/metrics.py
"""
KPI Calculations for Sales Performance

Handles all metric calculations over sales plans for one year:
- Per plan: monthly target, selected-month achievement, sales rate,
  rate tier and recruitment rhythm
- Year-to-date and annual totals
- Team aggregates for the supervisor / sales director KPI cards
- Monthly totals for the target vs achievement chart

Months are 1..12. The "current month" is the reporting month chosen on the
page: only months strictly before it count as past months.
"""

import logging
from datetime import date
from typing import Dict, Optional

import numpy as np
import pandas as pd

from ..constants import MONTH_ORDER, MONTHS_PER_YEAR
from ..metrics_engine import (
    compute_month_achievement,
    compute_recruitment_rhythm,
    compute_sales_rate,
    normalize_monthly_values,
    resolve_monthly_target,
    round_half_up,
    sales_rate_tier,
)

logger = logging.getLogger(__name__)


def _rate(achievement: float, target: float) -> Optional[float]:
    """Achievement over target in percent; None without a target."""
    if target <= 0:
        return None
    return round(achievement / target * 100, 1)


class SalesPlanMetrics:
    """
    KPI calculations for sales plans.

    Usage:
        metrics = SalesPlanMetrics(sales_df, current_month=date.today().month)

        table = metrics.build_performance_table()
        team = metrics.aggregate_team_sales()
        monthly = metrics.prepare_monthly_summary()
    """

    def __init__(self, sales_df: pd.DataFrame, current_month: int = None):
        """
        Args:
            sales_df: One row per sales plan with targets, achievements
                (12-entry lists or None) and monthly_target
            current_month: Reporting month 1..12 (defaults to today's month)
        """
        self.sales_df = sales_df if sales_df is not None else pd.DataFrame()
        self.current_month = int(current_month or date.today().month)

        if not 1 <= self.current_month <= MONTHS_PER_YEAR:
            raise ValueError(f"current_month must be 1..12, got {self.current_month}")

    @property
    def past_months(self) -> int:
        return self.current_month - 1

    # =========================================================================
    # PER PLAN
    # =========================================================================

    def evaluate_row(self, row: Dict) -> Dict:
        """Derived fields for one sales plan row."""
        targets = normalize_monthly_values(row.get('targets'))
        achievements = normalize_monthly_values(row.get('achievements'))
        monthly_target = resolve_monthly_target(row.get('monthly_target'), targets)

        index = self.current_month - 1
        past_achievements = achievements[:self.past_months]
        sales_rate = compute_sales_rate(past_achievements, monthly_target)

        return {
            'monthly_target': monthly_target,
            'month_target': targets[index],
            'month_achievement': achievements[index],
            'month_achievement_pct': compute_month_achievement(targets, achievements, self.current_month),
            'sales_rate': sales_rate,
            'rate_tier': sales_rate_tier(sales_rate),
            'recruitment_rhythm': compute_recruitment_rhythm(
                achievements, monthly_target, self.current_month
            ),
            'ytd_target': sum(targets[:self.current_month]),
            'ytd_achievement': sum(achievements[:self.current_month]),
            'annual_target': sum(targets),
            'annual_achievement': sum(achievements),
        }

    def build_performance_table(self) -> pd.DataFrame:
        """
        One row per sales plan: the input's descriptive columns plus every
        derived field of evaluate_row(). Undefined metrics stay None.
        """
        if self.sales_df.empty:
            return pd.DataFrame()

        records = []
        for row in self.sales_df.to_dict('records'):
            record = {k: v for k, v in row.items() if k not in ('targets', 'achievements', 'monthly_target')}
            record.update(self.evaluate_row(row))
            records.append(record)

        table = pd.DataFrame(records)
        # Keep None (not NaN) for undefined metrics
        for col in ('sales_rate', 'recruitment_rhythm', 'month_achievement_pct'):
            table[col] = table[col].astype(object).where(table[col].notna(), None)

        logger.debug(f"Performance table built for {len(table)} sales plans")
        return table

    # =========================================================================
    # AGGREGATES
    # =========================================================================

    def aggregate_team_sales(self) -> Dict:
        """
        Totals over every sales plan in the frame.

        Returns:
            Dict with ytd/annual target and achievement totals, their rates
            (None when the target total is 0), the team sales rate over past
            months, and the number of active plans (plans with a target).
        """
        ytd_target = ytd_achievement = annual_target = annual_achievement = 0.0
        month_target = month_achievement = 0.0
        past_achievement = past_target = 0.0
        active_plans = 0

        for row in self.sales_df.to_dict('records') if not self.sales_df.empty else []:
            targets = normalize_monthly_values(row.get('targets'))
            achievements = normalize_monthly_values(row.get('achievements'))

            ytd_target += sum(targets[:self.current_month])
            ytd_achievement += sum(achievements[:self.current_month])
            annual_target += sum(targets)
            annual_achievement += sum(achievements)
            month_target += targets[self.current_month - 1]
            month_achievement += achievements[self.current_month - 1]
            past_target += sum(targets[:self.past_months])
            past_achievement += sum(achievements[:self.past_months])

            if sum(targets) > 0:
                active_plans += 1

        team_sales_rate = None
        if past_target > 0:
            team_sales_rate = round_half_up(past_achievement / past_target * 100)

        return {
            'total_plans': len(self.sales_df),
            'active_plans': active_plans,
            'ytd_target': ytd_target,
            'ytd_achievement': ytd_achievement,
            'ytd_rate': _rate(ytd_achievement, ytd_target),
            'annual_target': annual_target,
            'annual_achievement': annual_achievement,
            'annual_rate': _rate(annual_achievement, annual_target),
            'month_target': month_target,
            'month_achievement': month_achievement,
            'month_rate': _rate(month_achievement, month_target),
            'team_sales_rate': team_sales_rate,
            'team_rate_tier': sales_rate_tier(team_sales_rate),
        }

    def aggregate_by_delegate(self) -> pd.DataFrame:
        """YTD totals and rate per delegate, sorted by rate (undefined last)."""
        table = self.build_performance_table()
        if table.empty:
            return pd.DataFrame()

        grouped = table.groupby(['delegate_id', 'delegate_name'], as_index=False, dropna=False).agg(
            plans=('ytd_target', 'size'),
            ytd_target=('ytd_target', 'sum'),
            ytd_achievement=('ytd_achievement', 'sum'),
        )
        grouped['ytd_rate'] = [
            _rate(a, t) for a, t in zip(grouped['ytd_achievement'], grouped['ytd_target'])
        ]
        grouped['ytd_rate'] = grouped['ytd_rate'].astype(object)
        return grouped.sort_values('ytd_rate', ascending=False, na_position='last').reset_index(drop=True)

    def prepare_monthly_summary(self) -> pd.DataFrame:
        """Target and achievement totals per month (chart input)."""
        totals_target = np.zeros(MONTHS_PER_YEAR)
        totals_achievement = np.zeros(MONTHS_PER_YEAR)

        if not self.sales_df.empty:
            rows = self.sales_df.to_dict('records')
            totals_target = np.array(
                [normalize_monthly_values(row.get('targets')) for row in rows]
            ).sum(axis=0)
            totals_achievement = np.array(
                [normalize_monthly_values(row.get('achievements')) for row in rows]
            ).sum(axis=0)

        return pd.DataFrame({
            'month': MONTH_ORDER,
            'month_number': np.arange(1, MONTHS_PER_YEAR + 1),
            'target': totals_target,
            'achievement': totals_achievement,
        })
