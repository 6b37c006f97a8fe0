# fieldforce/constants.py
"""
Shared Constants for the Field Force Dashboard

Centralized configuration for:
- Role definitions (closed set of five roles)
- Access level groupings
- Month names
- Status colors
"""

from enum import Enum
from typing import Optional


# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

class Role(str, Enum):
    """The five roles stored in profiles.role."""
    DELEGATE = "Delegate"
    SUPERVISOR = "Supervisor"
    SALES_DIRECTOR = "Sales Director"
    ADMIN = "Admin"
    MARKETING_MANAGER = "Marketing Manager"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """
        Map a stored role string to a Role.

        Accepts the stored label ("Sales Director") as well as the
        snake-case spelling ("sales_director"). Returns None for empty
        or unknown values.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text_value = str(value).strip()
        if not text_value:
            return None
        normalised = text_value.replace("_", " ").lower()
        for role in cls:
            if role.value.lower() == normalised:
                return role
        return None


# Full access: see every delegate and every action plan unfiltered
FULL_ACCESS_ROLES = [Role.ADMIN, Role.MARKETING_MANAGER]

# Team access: self + direct/indirect reports
TEAM_ACCESS_ROLES = [Role.SUPERVISOR, Role.SALES_DIRECTOR]

# Self access: own data only
SELF_ACCESS_ROLES = [Role.DELEGATE]

# Who reports to whom (direct hierarchy levels)
SUBORDINATE_ROLES = {
    Role.SUPERVISOR: [Role.DELEGATE],
    Role.SALES_DIRECTOR: [Role.SUPERVISOR, Role.DELEGATE],
}

# =====================================================================
# MONTHS
# =====================================================================

MONTHS_PER_YEAR = 12

MONTH_ORDER = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"
]

MONTH_MAPPING = {i + 1: name for i, name in enumerate(MONTH_ORDER)}

# =====================================================================
# COLOR SCHEME
# =====================================================================

STATUS_COLORS = {
    "green": "#28a745",
    "yellow": "#f0ad4e",
    "red": "#dc3545",
    "gray": "#9ca3af",
}

# Rendered in place of an undefined metric
NO_DATA = "–"
