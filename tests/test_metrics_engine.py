"""
Tests for the pure metric functions: return index, compliance status,
recruitment rhythm and sales rate.
"""
import pytest
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from fieldforce.constants import NO_DATA, Role
from fieldforce.metrics_engine import (
    ComplianceStatus,
    compute_compliance_status,
    compute_global_return_index,
    compute_month_achievement,
    compute_recruitment_rhythm,
    compute_return_index_percentage,
    compute_sales_rate,
    compute_visits_expected,
    format_metric,
    normalize_monthly_values,
    resolve_monthly_target,
    rhythm_denominator,
    round_half_up,
    sales_rate_tier,
)


class TestReturnIndex:
    """Year-to-date return index percentage."""

    @pytest.mark.parametrize("frequency", [0, 1, 4, 10])
    def test_january_expects_nothing(self, frequency):
        """In January nothing is due yet, so the index is 0 whatever the frequency."""
        assert compute_visits_expected(frequency, 1) == 0
        assert compute_return_index_percentage(7, frequency, 1) == 0

    def test_current_month_is_excluded(self):
        """Frequency 2 in March means 4 visits expected."""
        assert compute_visits_expected(2, 3) == 4
        assert compute_return_index_percentage(3, 2, 3) == 75

    def test_no_upper_clamp(self):
        """Over-achievers exceed 100%."""
        assert compute_return_index_percentage(9, 2, 3) == 225

    def test_zero_frequency_is_zero_not_error(self):
        """A plan with no frequency yields 0 rather than dividing by zero."""
        assert compute_return_index_percentage(3, 0, 6) == 0

    def test_rounds_half_up(self):
        """1/8 = 12.5% rounds to 13."""
        assert compute_return_index_percentage(1, 1, 9) == 13

    def test_global_index_includes_current_month(self):
        """Visits this year over Σ(frequency × current month)."""
        assert compute_global_return_index(30, [2, 3], 3) == 200
        assert compute_global_return_index(4, [2], 3) == 67

    def test_global_index_without_plans(self):
        """No plans means nothing expected: 0."""
        assert compute_global_return_index(5, [], 4) == 0


class TestComplianceStatus:
    """Status from the last two months of visits."""

    def test_visited_last_month_is_green(self):
        """Last month wins even when the percentage is 0."""
        assert compute_compliance_status(5, 0) == ComplianceStatus.GREEN
        assert compute_return_index_percentage(0, 3, 1) == 0

    def test_visited_month_before_last_is_yellow(self):
        """Only the month before last counts as yellow."""
        assert compute_compliance_status(0, 2) == ComplianceStatus.YELLOW

    def test_no_recent_visit_is_red(self):
        """No visit in either month is red."""
        assert compute_compliance_status(0, 0) == ComplianceStatus.RED

    def test_status_values_are_strings(self):
        """Statuses compare equal to their color names."""
        assert ComplianceStatus.GREEN == "green"


class TestRecruitmentRhythm:
    """Average-based pacing toward the monthly target."""

    def test_denominator(self):
        """(14 - m)(13 - m) / 2."""
        assert rhythm_denominator(1) == 78
        assert rhythm_denominator(4) == 45
        assert rhythm_denominator(12) == 1
        assert rhythm_denominator(13) == 0

    def test_gap_is_spread_over_remaining_months(self):
        """avg 90 vs target 120 in April: 30 × 12 / 45 = 8."""
        assert compute_recruitment_rhythm([80, 90, 100], 120, 4) == 8

    def test_only_past_months_are_read(self):
        """Achievements of the current and later months are ignored."""
        achievements = [80, 90, 100, 5000, 5000] + [0] * 7
        assert compute_recruitment_rhythm(achievements, 120, 4) == 8

    def test_ahead_of_target_floors_at_zero(self):
        """A negative raw rhythm is reported as 0."""
        assert compute_recruitment_rhythm([150] * 6, 100, 7) == 0

    def test_on_target_is_zero(self):
        """No gap, no extra pace."""
        assert compute_recruitment_rhythm([100] * 6, 100, 7) == 0

    def test_january_is_undefined(self):
        """No past month: undefined, not 0."""
        assert compute_recruitment_rhythm([100] * 12, 100, 1) is None
        assert compute_recruitment_rhythm([], 100, 5) is None

    def test_non_positive_target_is_undefined(self):
        """Target 0 or negative: undefined."""
        assert compute_recruitment_rhythm([10, 20], 0, 3) is None
        assert compute_recruitment_rhythm([10, 20], -5, 3) is None

    def test_degenerate_denominator_is_undefined(self):
        """Month 13 has a zero denominator."""
        assert compute_recruitment_rhythm([50] * 12, 100, 13) is None

    def test_december(self):
        """Denominator 1 in December: the whole gap × 12."""
        assert compute_recruitment_rhythm([50] * 11, 100, 12) == 600

    def test_rounds_half_up(self):
        """A raw rhythm of exactly 2.5 becomes 3."""
        assert compute_recruitment_rhythm([90.625] * 3, 100, 4) == 3

    def test_accepts_numpy_arrays(self):
        """Arrays coming from DataFrames work like lists."""
        assert compute_recruitment_rhythm(np.array([80.0, 90.0, 100.0]), 120, 4) == 8


class TestSalesRate:
    """Average monthly realization rate."""

    def test_mean_of_ratios(self):
        """80, 100, 120 against 100 average to 100."""
        assert compute_sales_rate([80, 100, 120], 100) == 100

    def test_zero_target_excludes_the_month(self):
        """Target 0 is excluded, not counted as 0%."""
        assert compute_sales_rate([50], 0) is None

    def test_no_past_months_is_undefined(self):
        """Empty history: undefined."""
        assert compute_sales_rate([], 100) is None

    def test_rounding(self):
        """25 and 25.5 average to 25.25, shown as 25."""
        assert compute_sales_rate([50, 51], 200) == 25

    @pytest.mark.parametrize("rate,tier", [
        (None, "gray"),
        (0, "red"),
        (79, "red"),
        (80, "yellow"),
        (100, "yellow"),
        (101, "green"),
    ])
    def test_tiers(self, rate, tier):
        """<80 red, 80..100 yellow, >100 green, undefined gray."""
        assert sales_rate_tier(rate) == tier


class TestMonthlyValues:
    """Array normalisation and target helpers."""

    def test_normalize_pads_and_coerces(self):
        """Missing and invalid entries become 0; length is always 12."""
        values = normalize_monthly_values([1, None, 'x', float('nan')])
        assert len(values) == 12
        assert values[:4] == [1.0, 0.0, 0.0, 0.0]

    def test_normalize_truncates(self):
        """Extra entries are dropped."""
        assert len(normalize_monthly_values(list(range(14)))) == 12

    def test_normalize_none(self):
        """No array at all is twelve zeros."""
        assert normalize_monthly_values(None) == [0.0] * 12

    def test_resolve_uses_stored_target(self):
        """A positive stored monthly target wins."""
        assert resolve_monthly_target(150, [120] * 12) == 150

    def test_resolve_falls_back_to_mean(self):
        """Missing or zero stored target: mean of the 12 targets."""
        assert resolve_monthly_target(None, [120] * 12) == 120
        assert resolve_monthly_target(0, [0] * 6 + [240] * 6) == 120

    def test_month_achievement(self):
        """Achievement over target for one month; None without target."""
        targets = [100] * 12
        achievements = [50] + [0] * 11
        assert compute_month_achievement(targets, achievements, 1) == 50
        assert compute_month_achievement([0] * 12, achievements, 1) is None

    def test_round_half_up(self):
        """Halves round up."""
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2
        assert round_half_up(0.5) == 1

    def test_format_metric(self):
        """Undefined renders as a dash, zero as 0%."""
        assert format_metric(None) == NO_DATA
        assert format_metric(0) == "0%"
        assert format_metric(75) == "75%"


class TestRole:
    """Role parsing."""

    @pytest.mark.parametrize("value,role", [
        ("Sales Director", Role.SALES_DIRECTOR),
        ("sales_director", Role.SALES_DIRECTOR),
        ("delegate", Role.DELEGATE),
        (Role.ADMIN, Role.ADMIN),
        ("Marketing Manager", Role.MARKETING_MANAGER),
    ])
    def test_parse(self, value, role):
        """Stored labels and snake case both parse."""
        assert Role.parse(value) is role

    @pytest.mark.parametrize("value", [None, "", "manager"])
    def test_parse_unknown(self, value):
        """Unknown or empty roles parse to None."""
        assert Role.parse(value) is None
