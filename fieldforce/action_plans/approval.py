# fieldforce/action_plans/approval.py
"""
Two-stage approval on action plans.

Each plan carries two independent status fields:
- supervisor_status: decided by a Supervisor
- sales_director_status: decided by a Sales Director

Each field moves Pending → Approved or Pending → Rejected exactly once.
Approved and Rejected are terminal; there is no reopening. No overall
status is derived from the pair.
"""

import logging
import uuid
from datetime import datetime
from typing import Collection, Dict, Optional

from ..constants import Role, SUBORDINATE_ROLES
from ..exceptions import InvalidStateError
from .models import ActionPlan, ApprovalStatus, Principal

logger = logging.getLogger(__name__)

SUPERVISOR_STATUS = 'supervisor_status'
SALES_DIRECTOR_STATUS = 'sales_director_status'

# Status field → role allowed to decide it
STATUS_FIELD_ROLES: Dict[str, Role] = {
    SUPERVISOR_STATUS: Role.SUPERVISOR,
    SALES_DIRECTOR_STATUS: Role.SALES_DIRECTOR,
}

# Status field → audience list that makes a principal an approver
STATUS_FIELD_AUDIENCE: Dict[str, str] = {
    SUPERVISOR_STATUS: 'targeted_supervisors',
    SALES_DIRECTOR_STATUS: 'targeted_sales_directors',
}


def status_field_for(role) -> Optional[str]:
    """The status field a role decides, or None."""
    role = Role.parse(role)
    for status_field, field_role in STATUS_FIELD_ROLES.items():
        if field_role is role:
            return status_field
    return None


class ApprovalStatusTransition:
    """
    Usage:
        transition = ApprovalStatusTransition()
        if transition.can_decide(plan, principal, SUPERVISOR_STATUS):
            plan = transition.apply(plan, principal, SUPERVISOR_STATUS, ApprovalStatus.APPROVED)
    """

    def __init__(self, subordinate_ids: Collection[str] = None):
        """
        Args:
            subordinate_ids: The principal's direct and indirect reports.
                When given, hierarchy-based approval also requires the
                creator to be one of them.
        """
        self.subordinate_ids = set(subordinate_ids) if subordinate_ids is not None else None

    def is_legitimate_approver(self, plan: ActionPlan, principal: Principal, status_field: str) -> bool:
        """Creator reports to the principal, or the principal is in the plan's audience."""
        audience = getattr(plan, STATUS_FIELD_AUDIENCE[status_field])
        if principal.id in audience:
            return True

        subordinate_roles = SUBORDINATE_ROLES.get(principal.role, [])
        if plan.creator_role not in subordinate_roles:
            return False
        if self.subordinate_ids is None:
            return True
        return plan.created_by in self.subordinate_ids

    def check(
        self,
        plan: ActionPlan,
        principal: Principal,
        status_field: str,
        new_status
    ) -> ApprovalStatus:
        """
        Validate a transition without applying it.

        Returns:
            The parsed target status

        Raises:
            InvalidStateError: unknown field, non-terminal target, wrong role,
                field no longer Pending, or principal not an approver
        """
        if status_field not in STATUS_FIELD_ROLES:
            raise InvalidStateError(f"Unknown status field: {status_field}", field=status_field)

        target = new_status if isinstance(new_status, ApprovalStatus) else None
        if target is None:
            for status in ApprovalStatus:
                if status.value == new_status:
                    target = status
        if target is None or not target.is_terminal:
            raise InvalidStateError(
                f"Status can only move to Approved or Rejected, not {new_status!r}",
                field=status_field
            )

        required_role = STATUS_FIELD_ROLES[status_field]
        if principal.role is not required_role:
            raise InvalidStateError(
                f"{status_field} can only be decided by a {required_role.value}",
                field=status_field
            )

        current = plan.status_of(status_field)
        if current.is_terminal:
            raise InvalidStateError(
                f"{status_field} is already {current.value}",
                field=status_field,
                current=current.value
            )

        if not self.is_legitimate_approver(plan, principal, status_field):
            raise InvalidStateError(
                f"User {principal.id} is not an approver of action plan {plan.id}",
                field=status_field,
                current=current.value
            )

        return target

    def can_decide(self, plan: ActionPlan, principal: Principal, status_field: str) -> bool:
        try:
            self.check(plan, principal, status_field, ApprovalStatus.APPROVED)
        except InvalidStateError:
            return False
        return True

    def apply(
        self,
        plan: ActionPlan,
        principal: Principal,
        status_field: str,
        new_status
    ) -> ActionPlan:
        """The plan with one status field decided; the other field is untouched."""
        target = self.check(plan, principal, status_field, new_status)
        logger.info(f"Action plan {plan.id}: {status_field} Pending -> {target.value} by {principal.id}")
        return plan.with_status(status_field, target)


def new_action_plan(creator: Principal, **details) -> ActionPlan:
    """
    A fresh plan authored by creator with both status fields Pending.

    details: type, date, location, description and any targeted_* lists.
    """
    targets = {
        name: frozenset(str(v) for v in (details.pop(name, None) or []))
        for name in list(details)
        if name.startswith('targeted_')
    }
    return ActionPlan(
        id=str(details.pop('id', None) or uuid.uuid4()),
        created_by=creator.id,
        creator_role=creator.role,
        creator_supervisor_id=creator.supervisor_id,
        supervisor_status=ApprovalStatus.PENDING,
        sales_director_status=ApprovalStatus.PENDING,
        created_at=datetime.now(),
        **targets,
        **details
    )
