# fieldforce/action_plans/categorizer.py
"""
Action Plan Categorization

Sorts the action plans visible to a principal into role-specific buckets.
Rules are evaluated top to bottom per plan and the first match wins, so a
plan lands in at most one bucket; plans matching no rule are dropped.

    own                          plan created by the principal
    supervisor_involving_me      Delegate; Supervisor-created; targets me
    sales_director_involving_me  Delegate; SD-created; targets me
    needing_my_approval          Supervisor; Delegate-created; supervisor status Pending
    involving_me                 Supervisor; SD-created; targets me
    delegate                     Supervisor; Delegate-created
    sales_director               Supervisor; SD-created
    needing_my_approval          Sales Director; Supervisor/Delegate-created; SD status Pending
    supervisor                   Sales Director; Supervisor-created
    delegate                     Sales Director; Delegate-created

Admin and Marketing Manager principals are not bucketed: they get the
unfiltered list.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..constants import Role, FULL_ACCESS_ROLES
from .models import ActionPlan, ApprovalStatus, Principal

logger = logging.getLogger(__name__)


class ActionPlanBucket(str, Enum):
    OWN = "own"
    SUPERVISOR_INVOLVING_ME = "supervisor_involving_me"
    SALES_DIRECTOR_INVOLVING_ME = "sales_director_involving_me"
    NEEDING_MY_APPROVAL = "needing_my_approval"
    INVOLVING_ME = "involving_me"
    DELEGATE = "delegate"
    SALES_DIRECTOR = "sales_director"
    SUPERVISOR = "supervisor"


BUCKET_LABELS = {
    ActionPlanBucket.OWN: "My action plans",
    ActionPlanBucket.SUPERVISOR_INVOLVING_ME: "From my supervisor",
    ActionPlanBucket.SALES_DIRECTOR_INVOLVING_ME: "From the sales director",
    ActionPlanBucket.NEEDING_MY_APPROVAL: "Waiting for my approval",
    ActionPlanBucket.INVOLVING_ME: "Involving me",
    ActionPlanBucket.DELEGATE: "Delegates' plans",
    ActionPlanBucket.SALES_DIRECTOR: "Sales director's plans",
    ActionPlanBucket.SUPERVISOR: "Supervisors' plans",
}

# Buckets shown to each role, in display order
ROLE_BUCKETS = {
    Role.DELEGATE: [
        ActionPlanBucket.OWN,
        ActionPlanBucket.SUPERVISOR_INVOLVING_ME,
        ActionPlanBucket.SALES_DIRECTOR_INVOLVING_ME,
    ],
    Role.SUPERVISOR: [
        ActionPlanBucket.OWN,
        ActionPlanBucket.NEEDING_MY_APPROVAL,
        ActionPlanBucket.INVOLVING_ME,
        ActionPlanBucket.DELEGATE,
        ActionPlanBucket.SALES_DIRECTOR,
    ],
    Role.SALES_DIRECTOR: [
        ActionPlanBucket.OWN,
        ActionPlanBucket.NEEDING_MY_APPROVAL,
        ActionPlanBucket.SUPERVISOR,
        ActionPlanBucket.DELEGATE,
    ],
}

# (principal role or None for any, predicate, bucket), in evaluation order
RULES: List[Tuple[Optional[Role], Callable[[ActionPlan, Principal], bool], ActionPlanBucket]] = [
    (None,
     lambda plan, me: plan.created_by == me.id,
     ActionPlanBucket.OWN),
    (Role.DELEGATE,
     lambda plan, me: plan.creator_role is Role.SUPERVISOR and me.id in plan.targeted_delegates,
     ActionPlanBucket.SUPERVISOR_INVOLVING_ME),
    (Role.DELEGATE,
     lambda plan, me: plan.creator_role is Role.SALES_DIRECTOR and me.id in plan.targeted_delegates,
     ActionPlanBucket.SALES_DIRECTOR_INVOLVING_ME),
    (Role.SUPERVISOR,
     lambda plan, me: (plan.creator_role is Role.DELEGATE
                       and plan.supervisor_status is ApprovalStatus.PENDING),
     ActionPlanBucket.NEEDING_MY_APPROVAL),
    (Role.SUPERVISOR,
     lambda plan, me: plan.creator_role is Role.SALES_DIRECTOR and me.id in plan.targeted_supervisors,
     ActionPlanBucket.INVOLVING_ME),
    (Role.SUPERVISOR,
     lambda plan, me: plan.creator_role is Role.DELEGATE,
     ActionPlanBucket.DELEGATE),
    (Role.SUPERVISOR,
     lambda plan, me: plan.creator_role is Role.SALES_DIRECTOR,
     ActionPlanBucket.SALES_DIRECTOR),
    (Role.SALES_DIRECTOR,
     lambda plan, me: (plan.creator_role in (Role.SUPERVISOR, Role.DELEGATE)
                       and plan.sales_director_status is ApprovalStatus.PENDING),
     ActionPlanBucket.NEEDING_MY_APPROVAL),
    (Role.SALES_DIRECTOR,
     lambda plan, me: plan.creator_role is Role.SUPERVISOR,
     ActionPlanBucket.SUPERVISOR),
    (Role.SALES_DIRECTOR,
     lambda plan, me: plan.creator_role is Role.DELEGATE,
     ActionPlanBucket.DELEGATE),
]


class ActionPlanCategorizer:
    """
    Usage:
        categorizer = ActionPlanCategorizer()
        buckets = categorizer.categorize(plans, principal)
        pending = buckets[ActionPlanBucket.NEEDING_MY_APPROVAL]
    """

    @staticmethod
    def is_unfiltered_viewer(principal: Principal) -> bool:
        return principal.role in FULL_ACCESS_ROLES

    @staticmethod
    def bucket_for(plan: ActionPlan, principal: Principal) -> Optional[ActionPlanBucket]:
        """The single bucket a plan belongs to, or None when it is dropped."""
        for role, predicate, bucket in RULES:
            if role is not None and principal.role is not role:
                continue
            if predicate(plan, principal):
                return bucket
        return None

    def categorize(
        self,
        plans: Iterable[ActionPlan],
        principal: Principal
    ) -> Dict[ActionPlanBucket, List[ActionPlan]]:
        """
        Every bucket, each holding its plans in input order.

        Buckets that the principal's role can never fill are present and empty.
        """
        buckets: Dict[ActionPlanBucket, List[ActionPlan]] = {bucket: [] for bucket in ActionPlanBucket}
        dropped = 0

        for plan in plans:
            bucket = self.bucket_for(plan, principal)
            if bucket is None:
                dropped += 1
                continue
            buckets[bucket].append(plan)

        sizes = {b.value: len(p) for b, p in buckets.items() if p}
        logger.debug(f"Categorized action plans for {principal.id}: {sizes}, dropped={dropped}")
        return buckets

    @staticmethod
    def visible_buckets(principal: Principal) -> List[ActionPlanBucket]:
        """Buckets to display for the principal's role, in order."""
        return ROLE_BUCKETS.get(principal.role, [ActionPlanBucket.OWN])
