# fieldforce/action_plans/queries.py
"""
SQL Queries for Action Plans

- Load plans with their creator's role, name and supervisor
- Create a plan (both approval fields Pending)
- Decide one approval field, guarded by role and Pending state

Target-audience lists are stored as native arrays on PostgreSQL and as
JSON text elsewhere.
"""

import json
import logging
from datetime import datetime
from typing import Callable, Collection, List

import streamlit as st
from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..config import config
from ..db import get_transaction
from ..exceptions import InvalidStateError, NotFoundError
from .approval import STATUS_FIELD_ROLES, ApprovalStatusTransition, new_action_plan
from .models import TARGET_FIELDS, ActionPlan, ApprovalStatus, Principal

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = config.get_app_setting("CACHE_TTL_SECONDS", 300)

_SELECT_PLANS = """
    SELECT
        ap.id,
        ap.created_by,
        ap.type,
        ap.date,
        ap.location,
        ap.description,
        ap.targeted_delegates,
        ap.targeted_supervisors,
        ap.targeted_sales_directors,
        ap.targeted_products,
        ap.targeted_bricks,
        ap.targeted_doctors,
        ap.supervisor_status,
        ap.sales_director_status,
        ap.is_executed,
        ap.created_at,
        ap.updated_at,
        p.role AS creator_role,
        p.supervisor_id AS creator_supervisor_id,
        p.first_name || ' ' || p.last_name AS creator_name
    FROM action_plans ap
    LEFT JOIN profiles p ON p.id = ap.created_by
"""


class ActionPlanQueries:
    """
    Data access for action plans.

    Usage:
        queries = ActionPlanQueries()

        plans = queries.get_action_plans()
        plan = queries.create_action_plan(principal, type='Staff', ...)
        plan = queries.update_status(plan_id, 'supervisor_status', 'Approved', principal)
    """

    def __init__(self, engine: Engine = None, on_change: Callable[[], None] = None):
        self._engine = engine
        self._on_change = on_change or clear_action_plan_caches

    @property
    def engine(self) -> Engine:
        """Lazy load database engine."""
        if self._engine is None:
            from ..db import get_db_engine
            self._engine = get_db_engine()
        return self._engine

    def _encode_ids(self, ids) -> object:
        values = sorted(str(v) for v in (ids or []))
        if self.engine.dialect.name == 'postgresql':
            return values
        return json.dumps(values)

    # =========================================================================
    # READS
    # =========================================================================

    def get_action_plans(self) -> List[ActionPlan]:
        """Every action plan, newest first."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(text(_SELECT_PLANS + " ORDER BY ap.created_at DESC")).mappings().all()
        except Exception as e:
            logger.error(f"Error loading action plans: {e}")
            raise

        plans = [ActionPlan.from_row(dict(row)) for row in rows]
        logger.debug(f"Loaded {len(plans)} action plans")
        return plans

    def get_action_plan(self, plan_id: str, conn=None) -> ActionPlan:
        """
        Raises:
            NotFoundError: No plan with this id
        """
        statement = text(_SELECT_PLANS + " WHERE ap.id = :id")
        if conn is not None:
            row = conn.execute(statement, {'id': plan_id}).mappings().first()
        else:
            with self.engine.connect() as own_conn:
                row = own_conn.execute(statement, {'id': plan_id}).mappings().first()

        if row is None:
            raise NotFoundError(f"Action plan {plan_id} not found")
        return ActionPlan.from_row(dict(row))

    # =========================================================================
    # WRITES
    # =========================================================================

    def create_action_plan(self, creator: Principal, **details) -> ActionPlan:
        """Insert a plan authored by creator; both approval fields start Pending."""
        plan = new_action_plan(creator, **details)

        params = {
            'id': plan.id,
            'created_by': plan.created_by,
            'type': plan.type,
            'date': plan.date.isoformat() if plan.date else None,
            'location': plan.location,
            'description': plan.description,
            'supervisor_status': plan.supervisor_status.value,
            'sales_director_status': plan.sales_director_status.value,
            'is_executed': plan.is_executed,
            'created_at': plan.created_at.isoformat(),
            'updated_at': plan.created_at.isoformat(),
        }
        for name in TARGET_FIELDS:
            params[name] = self._encode_ids(getattr(plan, name))

        columns = ', '.join(params)
        values = ', '.join(f':{name}' for name in params)

        with get_transaction(self.engine) as conn:
            conn.execute(text(f"INSERT INTO action_plans ({columns}) VALUES ({values})"), params)

        logger.info(f"✅ Action plan created: {plan.id} by {creator.id}")
        self._on_change()
        return plan

    def update_status(
        self,
        plan_id: str,
        status_field: str,
        new_status,
        principal: Principal,
        subordinate_ids: Collection[str] = None
    ) -> ActionPlan:
        """
        Decide one approval field.

        The transition is validated first; the UPDATE itself only matches a
        row whose field is still Pending (NULL or blank counts as Pending),
        so a decision made concurrently by another approver is never
        overwritten.

        Raises:
            NotFoundError: Unknown plan
            InvalidStateError: Transition refused, or the field was decided
                in the meantime. Nothing is written.
        """
        if status_field not in STATUS_FIELD_ROLES:
            raise InvalidStateError(f"Unknown status field: {status_field}", field=status_field)

        transition = ApprovalStatusTransition(subordinate_ids)

        with get_transaction(self.engine) as conn:
            plan = self.get_action_plan(plan_id, conn=conn)
            target = transition.check(plan, principal, status_field, new_status)

            result = conn.execute(
                text(f"""
                    UPDATE action_plans
                    SET {status_field} = :status, updated_at = :updated_at
                    WHERE id = :id
                      AND COALESCE(NULLIF(TRIM({status_field}), ''), :pending) = :pending
                """),
                {
                    'status': target.value,
                    'updated_at': datetime.now().isoformat(),
                    'id': plan_id,
                    'pending': ApprovalStatus.PENDING.value,
                }
            )

            if result.rowcount == 0:
                raise InvalidStateError(
                    f"{status_field} of action plan {plan_id} is no longer Pending",
                    field=status_field
                )

        logger.info(f"✅ Action plan {plan_id}: {status_field} -> {target.value} by {principal.id}")
        self._on_change()
        return plan.with_status(status_field, target)


# =============================================================================
# CACHED LOADERS
# =============================================================================

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner="Loading action plans...")
def load_action_plans() -> List[ActionPlan]:
    return ActionPlanQueries().get_action_plans()


def clear_action_plan_caches():
    load_action_plans.clear()
    logger.debug("Action plan caches cleared")
