# fieldforce/visit_compliance/queries.py
"""
SQL Queries and Data Loading for Visit Compliance

Handles all database interactions:
- Visit plans (doctor × delegate × frequency) with doctor and brick names
- Visits within a date window
- Recording a visit (the only write on this page)

Delegate filters are validated against access control when one is given.
Cached loaders use @st.cache_data; recording a visit clears them.
"""

import logging
import uuid
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd
import streamlit as st
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from ..access_control import AccessControl
from ..db import get_transaction
from ..exceptions import NotFoundError
from .constants import CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class VisitQueries:
    """
    Data access for visit compliance.

    Usage:
        access = AccessControl(user_role, principal_id)
        queries = VisitQueries(access)

        plans_df = queries.get_visit_plans()
        visits_df = queries.get_visits(plans_df['id'].tolist(), start, end)
        queries.record_visit(doctor_id, delegate_id)
    """

    def __init__(
        self,
        access_control: AccessControl = None,
        engine: Engine = None,
        on_change: Callable[[], None] = None
    ):
        """
        Args:
            access_control: AccessControl for delegate filtering (optional)
            engine: Optional engine (defaults to the shared one)
            on_change: Called after every successful write
                (defaults to clearing the cached loaders)
        """
        self.access = access_control
        self._engine = engine
        self._on_change = on_change or clear_visit_caches

    @property
    def engine(self) -> Engine:
        """Lazy load database engine."""
        if self._engine is None:
            from ..db import get_db_engine
            self._engine = get_db_engine()
        return self._engine

    def _resolve_delegate_ids(self, delegate_ids: Optional[Sequence[str]]) -> Optional[List[str]]:
        if self.access is None:
            return None if delegate_ids is None else list(delegate_ids)
        if delegate_ids:
            return self.access.validate_selected_delegates(list(delegate_ids))
        return self.access.get_accessible_delegate_ids()

    # =========================================================================
    # READS
    # =========================================================================

    def get_visit_plans(self, delegate_ids: Sequence[str] = None) -> pd.DataFrame:
        """
        Visit plans with doctor, brick and delegate details.

        Returns:
            DataFrame: id, doctor_id, delegate_id, visit_frequency,
            doctor_name, specialty, brick_id, brick_name, delegate_name
        """
        delegate_ids = self._resolve_delegate_ids(delegate_ids)
        if delegate_ids is not None and not delegate_ids:
            logger.warning("No accessible delegate IDs, returning empty DataFrame")
            return pd.DataFrame()

        query = """
            SELECT
                vp.id,
                vp.doctor_id,
                vp.delegate_id,
                vp.visit_frequency,
                d.first_name || ' ' || d.last_name AS doctor_name,
                d.specialty,
                d.brick_id,
                b.name AS brick_name,
                p.first_name || ' ' || p.last_name AS delegate_name
            FROM visit_plans vp
            INNER JOIN doctors d ON d.id = vp.doctor_id
            LEFT JOIN bricks b ON b.id = d.brick_id
            LEFT JOIN profiles p ON p.id = vp.delegate_id
        """
        params = {}
        if delegate_ids is not None:
            query += " WHERE vp.delegate_id IN :delegate_ids"
            params['delegate_ids'] = list(delegate_ids)
        query += " ORDER BY d.last_name, d.first_name"

        statement = text(query)
        if 'delegate_ids' in params:
            statement = statement.bindparams(bindparam('delegate_ids', expanding=True))

        return self._execute_query(statement, params, "visit_plans")

    def get_visits(
        self,
        visit_plan_ids: Sequence[str],
        start_date: date,
        end_date: date
    ) -> pd.DataFrame:
        """
        Visits for the given plans with start_date <= visit_date <= end_date.

        Returns:
            DataFrame: id, visit_plan_id, visit_date (datetime64)
        """
        if not visit_plan_ids:
            return pd.DataFrame(columns=['id', 'visit_plan_id', 'visit_date'])

        statement = text("""
            SELECT id, visit_plan_id, visit_date
            FROM visits
            WHERE visit_plan_id IN :plan_ids
              AND visit_date >= :start_date
              AND visit_date <= :end_date
            ORDER BY visit_date
        """).bindparams(bindparam('plan_ids', expanding=True))

        df = self._execute_query(
            statement,
            {
                'plan_ids': list(visit_plan_ids),
                'start_date': start_date.isoformat(),
                'end_date': end_date.isoformat(),
            },
            "visits"
        )
        if df.empty:
            return pd.DataFrame(columns=['id', 'visit_plan_id', 'visit_date'])

        df['visit_date'] = pd.to_datetime(df['visit_date'], errors='coerce')
        return df

    def _execute_query(self, statement, params: dict, query_name: str = "query") -> pd.DataFrame:
        """Execute a SELECT and return a DataFrame; errors propagate."""
        try:
            logger.debug(f"Executing {query_name}")
            with self.engine.connect() as conn:
                result = conn.execute(statement, params)
                df = pd.DataFrame(result.fetchall(), columns=list(result.keys()))
            logger.debug(f"{query_name} returned {len(df)} rows")
            return df
        except Exception as e:
            logger.error(f"Error executing {query_name}: {e}")
            raise

    # =========================================================================
    # WRITES
    # =========================================================================

    def record_visit(
        self,
        doctor_id: str,
        delegate_id: str,
        today: date = None,
        allow_duplicate: bool = True
    ) -> Dict:
        """
        Record one visit dated today for the (doctor, delegate) visit plan.

        Not idempotent by default: calling twice on the same day stores two
        visits. With allow_duplicate=False an existing visit for the same
        plan and date is returned instead.

        Raises:
            NotFoundError: No visit plan links this doctor to this delegate.
                Nothing is written.

        Returns:
            Dict with id, visit_plan_id, visit_date, created
        """
        visit_date = today or date.today()

        with get_transaction(self.engine) as conn:
            plan_row = conn.execute(
                text("""
                    SELECT id FROM visit_plans
                    WHERE doctor_id = :doctor_id AND delegate_id = :delegate_id
                    ORDER BY id
                """),
                {'doctor_id': doctor_id, 'delegate_id': delegate_id}
            ).fetchone()

            if plan_row is None:
                logger.warning(f"No visit plan for doctor={doctor_id}, delegate={delegate_id}")
                raise NotFoundError(
                    f"No visit plan links doctor {doctor_id} to delegate {delegate_id}"
                )

            visit_plan_id = plan_row[0]

            if not allow_duplicate:
                existing = conn.execute(
                    text("""
                        SELECT id FROM visits
                        WHERE visit_plan_id = :visit_plan_id AND visit_date = :visit_date
                    """),
                    {'visit_plan_id': visit_plan_id, 'visit_date': visit_date.isoformat()}
                ).fetchone()
                if existing is not None:
                    logger.info(f"Visit already recorded for plan {visit_plan_id} on {visit_date}")
                    return {
                        'id': existing[0],
                        'visit_plan_id': visit_plan_id,
                        'visit_date': visit_date,
                        'created': False,
                    }

            visit_id = str(uuid.uuid4())
            conn.execute(
                text("""
                    INSERT INTO visits (id, visit_plan_id, visit_date)
                    VALUES (:id, :visit_plan_id, :visit_date)
                """),
                {'id': visit_id, 'visit_plan_id': visit_plan_id, 'visit_date': visit_date.isoformat()}
            )

        logger.info(f"✅ Visit recorded: plan={visit_plan_id}, date={visit_date}")
        self._on_change()

        return {
            'id': visit_id,
            'visit_plan_id': visit_plan_id,
            'visit_date': visit_date,
            'created': True,
        }


# =============================================================================
# CACHED LOADERS
# =============================================================================

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner="Loading visits...")
def load_visit_data(
    delegate_ids: Tuple[str, ...],
    start_date: date,
    end_date: date
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Visit plans and visits for already-validated delegate ids.
    Use tuples for cache key compatibility.
    """
    queries = VisitQueries()
    plans_df = queries.get_visit_plans(list(delegate_ids))
    if plans_df.empty:
        return plans_df, pd.DataFrame(columns=['id', 'visit_plan_id', 'visit_date'])
    visits_df = queries.get_visits(plans_df['id'].tolist(), start_date, end_date)
    return plans_df, visits_df


def clear_visit_caches():
    """Drop cached visit data so the next read recomputes every index."""
    load_visit_data.clear()
    logger.debug("Visit caches cleared")
