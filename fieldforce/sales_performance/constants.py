# fieldforce/sales_performance/constants.py
"""
Constants for the Sales Performance Module

Centralized configuration for:
- Color schemes
- Rate tier labels
- Chart settings
- Export styles
"""

from ..config import config
from ..constants import STATUS_COLORS

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    "target": "#d62728",               # Red
    "achievement": "#1f77b4",          # Blue
    "rhythm": "#800080",               # Purple
    "text_dark": "#333333",
    "grid": "#e0e0e0",
}

RATE_TIER_COLORS = {
    tier: STATUS_COLORS[tier] for tier in ("green", "yellow", "red", "gray")
}

RATE_TIER_LABELS = {
    "green": "Above target",
    "yellow": "On track",
    "red": "Below 80%",
    "gray": "No data",
}

# =====================================================================
# TABLE COLUMNS
# =====================================================================

PERFORMANCE_COLUMNS = [
    'delegate_name',
    'product_name',
    'brick_name',
    'monthly_target',
    'month_target',
    'month_achievement',
    'month_achievement_pct',
    'sales_rate',
    'rate_tier',
    'recruitment_rhythm',
    'ytd_target',
    'ytd_achievement',
]

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_WIDTH = 800
CHART_HEIGHT = 320

# =====================================================================
# CACHE SETTINGS
# =====================================================================

CACHE_TTL_SECONDS = config.get_app_setting("CACHE_TTL_SECONDS", 300)

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
    "number_format": '#,##0',
    "percent_format": '0"%"',
    "date_format": 'YYYY-MM-DD',
}

EXCEL_TIER_FILLS = {
    "green": "C6EFCE",
    "yellow": "FFEB9C",
    "red": "FFC7CE",
}
