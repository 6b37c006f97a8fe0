# fieldforce/sales_performance/queries.py
"""
SQL Queries and Data Loading for Sales Performance

Sales plans (delegate × product × brick) joined to their yearly sales row.
The targets / achievements arrays are normalised to exactly 12 numbers on
the way out, whatever the backend hands back (native array, JSON text or a
PostgreSQL array literal).
"""

import json
import logging
from typing import List, Optional, Sequence, Tuple

import pandas as pd
import streamlit as st
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Engine

from ..access_control import AccessControl
from ..metrics_engine import normalize_monthly_values
from .constants import CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


def parse_monthly_array(value) -> Optional[List[float]]:
    """
    Coerce a stored targets/achievements value to 12 numbers.

    Returns None when there is no value at all, so "no sales row" stays
    distinguishable from "a row of zeros".
    """
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.startswith('{') and raw.endswith('}'):
            items = [item.strip() for item in raw[1:-1].split(',') if item.strip()]
            value = [None if item.upper() == 'NULL' else item for item in items]
        else:
            value = json.loads(raw)
    return normalize_monthly_values(value)


class SalesQueries:
    """
    Data access for sales performance.

    Usage:
        access = AccessControl(user_role, principal_id)
        queries = SalesQueries(access)

        sales_df = queries.get_sales_plans(year=2025)
    """

    def __init__(self, access_control: AccessControl = None, engine: Engine = None):
        self.access = access_control
        self._engine = engine

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

    def get_sales_plans(
        self,
        year: int,
        delegate_ids: Sequence[str] = None,
        product_id: str = None,
        brick_id: str = None
    ) -> pd.DataFrame:
        """
        Sales plans with their sales row for the given year.

        Returns:
            DataFrame: sales_plan_id, delegate_id, delegate_name, product_id,
            product_name, brick_id, brick_name, sector_id, sales_id, year,
            monthly_target, targets, achievements
        """
        delegate_ids = self._resolve_delegate_ids(delegate_ids)
        if delegate_ids is not None and not delegate_ids:
            logger.warning("No accessible delegate IDs, returning empty DataFrame")
            return pd.DataFrame()

        query = """
            SELECT
                sp.id AS sales_plan_id,
                sp.delegate_id,
                p.first_name || ' ' || p.last_name AS delegate_name,
                sp.product_id,
                pr.name AS product_name,
                sp.brick_id,
                b.name AS brick_name,
                b.sector_id,
                s.id AS sales_id,
                s.year,
                s.monthly_target,
                s.targets,
                s.achievements
            FROM sales_plans sp
            LEFT JOIN profiles p ON p.id = sp.delegate_id
            LEFT JOIN products pr ON pr.id = sp.product_id
            LEFT JOIN bricks b ON b.id = sp.brick_id
            LEFT JOIN sales s ON s.sales_plan_id = sp.id AND s.year = :year
            WHERE 1 = 1
        """
        params = {'year': int(year)}

        if delegate_ids is not None:
            query += " AND sp.delegate_id IN :delegate_ids"
            params['delegate_ids'] = list(delegate_ids)
        if product_id:
            query += " AND sp.product_id = :product_id"
            params['product_id'] = product_id
        if brick_id:
            query += " AND sp.brick_id = :brick_id"
            params['brick_id'] = brick_id

        query += " ORDER BY delegate_name, product_name"

        statement = text(query)
        if 'delegate_ids' in params:
            statement = statement.bindparams(bindparam('delegate_ids', expanding=True))

        df = self._execute_query(statement, params, "sales_plans")
        if df.empty:
            return df

        df['targets'] = df['targets'].apply(parse_monthly_array).astype(object)
        df['achievements'] = df['achievements'].apply(parse_monthly_array).astype(object)
        df['monthly_target'] = pd.to_numeric(df['monthly_target'], errors='coerce')
        return df

    def get_filter_options(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Products and bricks for the sidebar selectors."""
        products = self._execute_query(
            text("SELECT id, name FROM products ORDER BY name"), {}, "products"
        )
        bricks = self._execute_query(
            text("SELECT id, name, sector_id FROM bricks ORDER BY name"), {}, "bricks"
        )
        return products, bricks

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


# =============================================================================
# CACHED LOADERS
# =============================================================================

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner="Loading sales...")
def load_sales_data(
    year: int,
    delegate_ids: Tuple[str, ...],
    product_id: str = None,
    brick_id: str = None
) -> pd.DataFrame:
    """
    Sales plans for already-validated delegate ids.
    Use tuples for cache key compatibility.
    """
    return SalesQueries().get_sales_plans(year, list(delegate_ids), product_id, brick_id)


@st.cache_data(ttl=CACHE_TTL_SECONDS)
def load_filter_options() -> Tuple[pd.DataFrame, pd.DataFrame]:
    return SalesQueries().get_filter_options()
