# fieldforce/action_plans/models.py
"""
Action plan records and the principal viewing them.

Target-audience lists come back from the database as native arrays
(PostgreSQL), JSON text (SQLite) or array literals; from_row() accepts
all three.
"""

import datetime
import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, FrozenSet, Optional

import pandas as pd

from ..constants import Role

logger = logging.getLogger(__name__)


class ApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING

    @classmethod
    def parse(cls, value) -> "ApprovalStatus":
        """Unknown or empty values read as Pending."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.PENDING
        for status in cls:
            if status.value.lower() == str(value).strip().lower():
                return status
        logger.warning(f"Unknown approval status {value!r}, treating as Pending")
        return cls.PENDING


ACTION_TYPES = ["Staff", "Conference", "Training", "Event", "Other"]

TARGET_FIELDS = [
    'targeted_delegates',
    'targeted_supervisors',
    'targeted_sales_directors',
    'targeted_products',
    'targeted_bricks',
    'targeted_doctors',
]


def parse_id_list(value) -> FrozenSet[str]:
    """Set of ids from a list, JSON text or a {a,b} array literal."""
    if value is None:
        return frozenset()
    if isinstance(value, float) and pd.isna(value):
        return frozenset()
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return frozenset()
        if raw.startswith('{') and raw.endswith('}'):
            items = [item.strip().strip('"') for item in raw[1:-1].split(',')]
            return frozenset(item for item in items if item and item.upper() != 'NULL')
        value = json.loads(raw)
    return frozenset(str(item) for item in value if item is not None)


@dataclass(frozen=True)
class Principal:
    """The signed-in user, as the categorizer and approval rules see it."""
    id: str
    role: Optional[Role]
    supervisor_id: Optional[str] = None

    @classmethod
    def create(cls, id: str, role, supervisor_id: str = None) -> "Principal":
        return cls(id=str(id), role=Role.parse(role), supervisor_id=supervisor_id)


@dataclass(frozen=True)
class ActionPlan:
    id: str
    created_by: str
    creator_role: Optional[Role]
    supervisor_status: ApprovalStatus = ApprovalStatus.PENDING
    sales_director_status: ApprovalStatus = ApprovalStatus.PENDING
    creator_supervisor_id: Optional[str] = None
    targeted_delegates: FrozenSet[str] = field(default_factory=frozenset)
    targeted_supervisors: FrozenSet[str] = field(default_factory=frozenset)
    targeted_sales_directors: FrozenSet[str] = field(default_factory=frozenset)
    targeted_products: FrozenSet[str] = field(default_factory=frozenset)
    targeted_bricks: FrozenSet[str] = field(default_factory=frozenset)
    targeted_doctors: FrozenSet[str] = field(default_factory=frozenset)
    type: Optional[str] = None
    date: Optional[datetime.date] = None
    location: Optional[str] = None
    description: Optional[str] = None
    is_executed: bool = False
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    creator_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict) -> "ActionPlan":
        plan_date = row.get('date')
        if plan_date is not None and not isinstance(plan_date, datetime.date):
            parsed = pd.to_datetime(plan_date, errors='coerce')
            plan_date = None if pd.isna(parsed) else parsed.date()

        return cls(
            id=str(row['id']),
            created_by=str(row['created_by']),
            creator_role=Role.parse(row.get('creator_role')),
            supervisor_status=ApprovalStatus.parse(row.get('supervisor_status')),
            sales_director_status=ApprovalStatus.parse(row.get('sales_director_status')),
            creator_supervisor_id=row.get('creator_supervisor_id'),
            type=row.get('type'),
            date=plan_date,
            location=row.get('location'),
            description=row.get('description'),
            is_executed=bool(row.get('is_executed') or False),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            creator_name=row.get('creator_name'),
            **{name: parse_id_list(row.get(name)) for name in TARGET_FIELDS}
        )

    def status_of(self, status_field: str) -> ApprovalStatus:
        return getattr(self, status_field)

    def with_status(self, status_field: str, status: ApprovalStatus) -> "ActionPlan":
        return replace(self, **{status_field: status})

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'created_by': self.created_by,
            'creator_name': self.creator_name,
            'creator_role': self.creator_role.value if self.creator_role else None,
            'type': self.type,
            'date': self.date,
            'location': self.location,
            'description': self.description,
            'supervisor_status': self.supervisor_status.value,
            'sales_director_status': self.sales_director_status.value,
            'is_executed': self.is_executed,
            **{name: sorted(getattr(self, name)) for name in TARGET_FIELDS},
        }
