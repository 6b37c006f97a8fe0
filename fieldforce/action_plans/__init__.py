# fieldforce/action_plans/__init__.py
"""
Action Plans Module

Components:
- models: ActionPlan, Principal, ApprovalStatus
- categorizer: Role-specific buckets (first matching rule wins)
- approval: Two independent approval fields, Pending → Approved/Rejected
- queries: Load, create and guarded status update

Usage:
    from fieldforce.action_plans import (
        ActionPlanCategorizer,
        ApprovalStatusTransition,
        ActionPlanQueries,
    )
"""

from .models import ActionPlan, ApprovalStatus, Principal, ACTION_TYPES, TARGET_FIELDS
from .categorizer import ActionPlanBucket, ActionPlanCategorizer, BUCKET_LABELS
from .approval import (
    ApprovalStatusTransition,
    SUPERVISOR_STATUS,
    SALES_DIRECTOR_STATUS,
    new_action_plan,
    status_field_for,
)
from .queries import ActionPlanQueries, load_action_plans, clear_action_plan_caches

__all__ = [
    'ActionPlan',
    'ApprovalStatus',
    'Principal',
    'ACTION_TYPES',
    'TARGET_FIELDS',
    'ActionPlanBucket',
    'ActionPlanCategorizer',
    'BUCKET_LABELS',
    'ApprovalStatusTransition',
    'SUPERVISOR_STATUS',
    'SALES_DIRECTOR_STATUS',
    'new_action_plan',
    'status_field_for',
    'ActionPlanQueries',
    'load_action_plans',
    'clear_action_plan_caches',
]
