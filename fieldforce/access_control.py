# fieldforce/access_control.py
"""
Role-based Access Control

Handles data access permissions based on the principal's role:
- Admin / Marketing Manager: full access to every delegate
- Supervisor / Sales Director: self + team members (recursive hierarchy)
- Delegate: own data only

Uses a recursive CTE over profiles.supervisor_id to walk the hierarchy.
"""

import logging
from typing import List, Optional, Set

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from .constants import Role, FULL_ACCESS_ROLES, TEAM_ACCESS_ROLES

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Manage data access based on role and the supervisor hierarchy.

    Usage:
        access = AccessControl(
            user_role=st.session_state.user_role,
            principal_id=st.session_state.user_id
        )

        level = access.get_access_level()  # 'full', 'team', or 'self'
        ids = access.get_accessible_delegate_ids()
        filtered_df = access.filter_dataframe(df, 'delegate_id')
    """

    def __init__(self, user_role, principal_id: Optional[str], engine: Engine = None):
        """
        Args:
            user_role: Role or stored role string of the current principal
            principal_id: profiles.id of the current principal
            engine: Optional engine (defaults to the shared one)
        """
        self.role = Role.parse(user_role)
        self.principal_id = principal_id
        self._engine = engine
        self._team: Optional[pd.DataFrame] = None
        self._accessible_ids: Optional[List[str]] = None

        logger.info(f"AccessControl initialized: role={self.role}, principal_id={self.principal_id}")

    @property
    def engine(self) -> Engine:
        """Lazy load database engine."""
        if self._engine is None:
            from .db import get_db_engine
            self._engine = get_db_engine()
        return self._engine

    # =========================================================================
    # ACCESS LEVEL DETERMINATION
    # =========================================================================

    def get_access_level(self) -> str:
        """
        Returns:
            'full' - Can view all delegates
            'team' - Can view self + team members
            'self' - Can view own data only
        """
        if self.role in FULL_ACCESS_ROLES:
            return 'full'
        elif self.role in TEAM_ACCESS_ROLES:
            return 'team'
        else:
            return 'self'

    def can_view_all(self) -> bool:
        return self.get_access_level() == 'full'

    def can_select_delegate(self) -> bool:
        return self.get_access_level() != 'self'

    # =========================================================================
    # TEAM HIERARCHY
    # =========================================================================

    def get_team(self) -> pd.DataFrame:
        """
        Every profile under the principal, direct and indirect.
        Columns: id, name, role, supervisor_id, level (1 = direct report).
        Cached after first call.
        """
        if self._team is not None:
            return self._team

        if not self.principal_id:
            logger.warning("No principal_id provided for team access")
            self._team = pd.DataFrame(columns=['id', 'name', 'role', 'supervisor_id', 'level'])
            return self._team

        query = text("""
            WITH RECURSIVE team_hierarchy AS (
                SELECT
                    id,
                    first_name || ' ' || last_name AS name,
                    role,
                    supervisor_id,
                    1 AS level
                FROM profiles
                WHERE supervisor_id = :principal_id

                UNION ALL

                SELECT
                    p.id,
                    p.first_name || ' ' || p.last_name AS name,
                    p.role,
                    p.supervisor_id,
                    th.level + 1
                FROM profiles p
                INNER JOIN team_hierarchy th ON p.supervisor_id = th.id
            )
            SELECT id, name, role, supervisor_id, level
            FROM team_hierarchy
            ORDER BY level, name
        """)

        with self.engine.connect() as conn:
            rows = conn.execute(query, {'principal_id': self.principal_id}).fetchall()

        self._team = pd.DataFrame(
            [tuple(r) for r in rows],
            columns=['id', 'name', 'role', 'supervisor_id', 'level']
        )
        logger.info(f"Team hierarchy for {self.principal_id}: {len(self._team)} members")
        return self._team

    def get_subordinate_ids(self) -> Set[str]:
        """Profile ids below the principal in the hierarchy (self excluded)."""
        if self.get_access_level() != 'team':
            return set()
        return set(self.get_team()['id'].tolist())

    # =========================================================================
    # ACCESSIBLE DELEGATE IDS
    # =========================================================================

    def get_accessible_delegate_ids(self) -> List[str]:
        """
        Delegate ids whose visits and sales the principal may read.
        Results are cached after first call.
        """
        if self._accessible_ids is not None:
            return self._accessible_ids

        level = self.get_access_level()

        if level == 'full':
            self._accessible_ids = self._get_all_delegate_ids()
        elif level == 'team':
            team = self.get_team()
            self._accessible_ids = team.loc[
                team['role'].map(Role.parse) == Role.DELEGATE, 'id'
            ].tolist()
        else:
            self._accessible_ids = [self.principal_id] if self.principal_id else []

        logger.info(f"Accessible delegate IDs ({level}): {len(self._accessible_ids)} delegates")
        return self._accessible_ids

    def _get_all_delegate_ids(self) -> List[str]:
        query = text("SELECT id FROM profiles WHERE role = :role ORDER BY last_name, first_name")
        with self.engine.connect() as conn:
            result = conn.execute(query, {'role': Role.DELEGATE.value})
            return [row[0] for row in result]

    # =========================================================================
    # DATA FILTERING
    # =========================================================================

    def filter_dataframe(self, df: pd.DataFrame, delegate_id_col: str = 'delegate_id') -> pd.DataFrame:
        """Keep only rows belonging to accessible delegates."""
        if df.empty:
            return df

        if delegate_id_col not in df.columns:
            logger.warning(f"Column '{delegate_id_col}' not found in DataFrame")
            return df

        accessible_ids = self.get_accessible_delegate_ids()
        filtered = df[df[delegate_id_col].isin(accessible_ids)]
        logger.debug(f"Filtered DataFrame: {len(df)} -> {len(filtered)} rows")
        return filtered

    def validate_selected_delegates(self, selected_ids: List[str]) -> List[str]:
        """Drop selected delegate ids the principal may not read."""
        accessible_ids = set(self.get_accessible_delegate_ids())
        valid_ids = [i for i in selected_ids if i in accessible_ids]

        if len(valid_ids) < len(selected_ids):
            logger.warning(
                f"Some selected delegates were filtered out: "
                f"selected={len(selected_ids)}, valid={len(valid_ids)}"
            )

        return valid_ids

    def __repr__(self) -> str:
        return (
            f"AccessControl(role='{self.role.value if self.role else None}', "
            f"principal_id={self.principal_id}, "
            f"level='{self.get_access_level()}')"
        )
