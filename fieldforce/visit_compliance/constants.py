# fieldforce/visit_compliance/constants.py
"""
Constants for the Visit Compliance Module

- Compliance status labels and colors
- Monthly progress statuses (team view)
- Doctor status bird states
- Cache settings
"""

from ..config import config
from ..constants import STATUS_COLORS

# =====================================================================
# COMPLIANCE STATUS
# =====================================================================

COMPLIANCE_LABELS = {
    "green": "Visited last month",
    "yellow": "Visited the month before last",
    "red": "No visit in the last two months",
}

COMPLIANCE_COLORS = {
    status: STATUS_COLORS[status] for status in ("green", "yellow", "red")
}

COMPLIANCE_ORDER = ["red", "yellow", "green"]

# =====================================================================
# MONTHLY PROGRESS (team view)
# =====================================================================

PROGRESS_COMPLETED = "completed"
PROGRESS_PENDING = "pending"
PROGRESS_OVERDUE = "overdue"

# Day of month after which an unmet plan is overdue
DEFAULT_OVERDUE_AFTER_DAY = 20

# =====================================================================
# STATUS BIRD
# =====================================================================

BIRD_STORE_KEY = "doctor-bird-statuses"

BIRD_CYCLE = ["grey", "yellow", "green"]

BIRD_COLORS = {
    "grey": "#9CA3AF",
    "yellow": "#F59E0B",
    "green": "#10B981",
}

BIRD_LABELS = {
    "grey": "No status",
    "yellow": "Juvenile goldfinch",
    "green": "Adult goldfinch",
}

# =====================================================================
# CACHE / CHART SETTINGS
# =====================================================================

CACHE_TTL_SECONDS = config.get_app_setting("CACHE_TTL_SECONDS", 300)

CHART_HEIGHT = 260
