# fieldforce/metrics_engine.py
"""
Metrics Engine

Pure calculations shared by the visit and sales pages:
- Return index percentage (year-to-date visit compliance)
- Compliance status from the last two months of visits
- Recruitment rhythm (forward pacing toward the monthly target)
- Sales rate (average monthly realization) and its badge tier

Undefined metrics are returned as None and must never be coerced to 0:
"0%" and "no data" are different things on screen and in averages.

Recruitment rhythm is the average-based formula. An older year-to-date
variant (sum of targets minus sum of achievements over a triangular number
of remaining months, bucketed at 80/50) is not implemented here.
"""

import math
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .constants import MONTHS_PER_YEAR, NO_DATA


class ComplianceStatus(str, Enum):
    """Visit compliance for one doctor, from the last two months."""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


# Sales rate badge thresholds (percent)
RATE_RED_BELOW = 80
RATE_YELLOW_UP_TO = 100


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Math.round semantics)."""
    return int(math.floor(value + 0.5))


def _as_number(value) -> float:
    """Missing monthly entries count as 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def _as_list(values) -> list:
    if values is None:
        return []
    return list(values)


def normalize_monthly_values(values: Optional[Iterable]) -> List[float]:
    """
    Coerce a targets/achievements array to exactly 12 numbers.

    Missing, None and NaN entries become 0; extra entries are dropped.
    """
    result = [_as_number(v) for v in _as_list(values)]
    result = result[:MONTHS_PER_YEAR]
    result.extend([0.0] * (MONTHS_PER_YEAR - len(result)))
    return result


# =============================================================================
# RETURN INDEX
# =============================================================================

def compute_visits_expected(visit_frequency: int, current_month: int) -> int:
    """Visits due before the current month (the month in progress is excluded)."""
    return int(visit_frequency or 0) * max(0, int(current_month) - 1)


def compute_return_index_percentage(
    visits_completed_ytd: int,
    visit_frequency: int,
    current_month: int
) -> int:
    """
    Year-to-date return index.

    Args:
        visits_completed_ytd: Visits from January 1st up to, not including,
            the first day of the current month
        visit_frequency: Target visits per month
        current_month: 1..12

    Returns:
        round(completed / expected × 100), or 0 when nothing is expected yet.
        Not clamped: over-achievers exceed 100.
    """
    expected = compute_visits_expected(visit_frequency, current_month)
    if expected <= 0:
        return 0
    return round_half_up(visits_completed_ytd / expected * 100)


def compute_compliance_status(
    visits_last_month: int,
    visits_month_before_last: int
) -> ComplianceStatus:
    """
    Compliance status, first match wins:
    visited last month → green; else visited the month before → yellow;
    else red. Independent of the percentage index.
    """
    if visits_last_month > 0:
        return ComplianceStatus.GREEN
    if visits_month_before_last > 0:
        return ComplianceStatus.YELLOW
    return ComplianceStatus.RED


def compute_global_return_index(
    total_visits_year: int,
    visit_frequencies: Iterable[int],
    current_month: int
) -> int:
    """
    Delegate-wide header figure: visits this year over
    Σ(frequency × current month). Includes the current month.
    """
    expected = sum(int(f or 0) * int(current_month) for f in visit_frequencies)
    if expected <= 0:
        return 0
    return round_half_up(total_visits_year / expected * 100)


# =============================================================================
# RECRUITMENT RHYTHM
# =============================================================================

def rhythm_denominator(current_month: int) -> float:
    """Triangular weighting over the remaining months: (14 − m)(13 − m) / 2."""
    m = int(current_month)
    return (14 - m) * (13 - m) / 2


def compute_recruitment_rhythm(
    achievements: Sequence,
    monthly_target: Optional[float],
    current_month: int
) -> Optional[int]:
    """
    Required pace to close the gap between the average achievement of the
    past months and the flat monthly target.

    Args:
        achievements: Monthly achievements, index 0 = January. Only the
            months strictly before current_month are read.
        monthly_target: Flat monthly target
        current_month: 1..12

    Returns:
        max(0, round((target − avg_prev) × 12 / denominator)), or None when
        there is no past month, the target is not positive, or the
        denominator is not positive.
    """
    m = int(current_month)
    prev = [_as_number(v) for v in _as_list(achievements)[:max(0, m - 1)]]
    if not prev:
        return None

    avg_prev = sum(prev) / len(prev)
    target = _as_number(monthly_target)
    denominator = rhythm_denominator(m)

    if target <= 0 or denominator <= 0:
        return None

    raw = (target - avg_prev) * MONTHS_PER_YEAR / denominator
    return max(0, round_half_up(raw))


# =============================================================================
# SALES RATE
# =============================================================================

def compute_sales_rate(
    achievements_past_months: Sequence,
    monthly_target: Optional[float]
) -> Optional[int]:
    """
    Average realization rate over the past months.

    A month only contributes a ratio when the target is positive; months
    without one are excluded rather than counted as 0%.

    Returns:
        Rounded mean of the defined ratios, or None if there are none.
    """
    target = _as_number(monthly_target)
    ratios = [
        _as_number(a) / target * 100
        for a in _as_list(achievements_past_months)
        if target > 0
    ]
    if not ratios:
        return None
    return round_half_up(sum(ratios) / len(ratios))


def sales_rate_tier(rate: Optional[float]) -> str:
    """Badge tier: <80 red, 80..100 yellow, >100 green, None gray."""
    if rate is None:
        return "gray"
    if rate < RATE_RED_BELOW:
        return "red"
    if rate <= RATE_YELLOW_UP_TO:
        return "yellow"
    return "green"


def compute_month_achievement(
    targets: Sequence,
    achievements: Sequence,
    month: int
) -> Optional[int]:
    """Achievement percentage for a single month (1..12); None without a target."""
    index = int(month) - 1
    targets = normalize_monthly_values(targets)
    achievements = normalize_monthly_values(achievements)
    if not 0 <= index < MONTHS_PER_YEAR or targets[index] <= 0:
        return None
    return round_half_up(achievements[index] / targets[index] * 100)


def resolve_monthly_target(monthly_target, targets: Optional[Sequence] = None) -> float:
    """
    Flat monthly target for a sales row.

    Uses the stored monthly target when present, otherwise the mean of
    the 12 monthly targets.
    """
    if monthly_target is not None:
        value = _as_number(monthly_target)
        if value > 0 or targets is None:
            return value
    if targets is None:
        return 0.0
    return sum(normalize_monthly_values(targets)) / MONTHS_PER_YEAR


def format_metric(value: Optional[float], suffix: str = "%") -> str:
    """Render a metric, with a dash for undefined values."""
    if value is None:
        return NO_DATA
    return f"{value:,.0f}{suffix}"
