# fieldforce/db.py
"""
Database Connection Management

Features:
- Singleton engine with thread-safe double-checked locking
- Connection pooling with auto-reconnect
- Health check utilities
- Query execution helpers
"""

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from sqlalchemy.exc import OperationalError
from urllib.parse import quote_plus
import logging
import threading
from typing import Tuple, Optional, Dict, Any, List
from contextlib import contextmanager

from .config import config

logger = logging.getLogger(__name__)

# ==================== SINGLETON ENGINE ====================

_engine = None
_engine_lock = threading.Lock()


def get_db_engine() -> Engine:
    """
    Get SQLAlchemy database engine (singleton pattern)

    Thread-safe implementation using double-checked locking.
    Reuses the same engine across all calls to prevent
    connection pool exhaustion.
    """
    global _engine

    if _engine is None:
        with _engine_lock:
            if _engine is None:
                _engine = _create_engine()

    return _engine


def build_database_url(db_config: Dict[str, Any]) -> str:
    """Connection URL from DATABASE_URL or the individual DB_* settings."""
    if db_config.get("url"):
        return db_config["url"]

    if not all([db_config.get("host"), db_config.get("user"), db_config.get("password")]):
        logger.error("Missing required database configuration")
        raise ValueError("Missing required database configuration. Please check .env file.")

    user = db_config["user"]
    password = quote_plus(str(db_config["password"]))
    return (
        f"{db_config['driver']}://{user}:{password}"
        f"@{db_config['host']}:{db_config['port']}/{db_config['database']}"
    )


def _create_engine() -> Engine:
    """Create new database engine with configured settings"""
    db_config = config.get_db_config()
    app_config = config.app_config

    url = build_database_url(db_config)
    logger.info(f"🔌 Creating database engine: {db_config['driver']}://***@{db_config['host'] or 'DATABASE_URL'}")

    pool_size = app_config.get("DB_POOL_SIZE", 5)
    pool_recycle = app_config.get("DB_POOL_RECYCLE", 3600)

    engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,  # Auto-reconnect on stale connections
        echo=False
    )

    logger.info(f"✅ Database engine created (pool_size={pool_size}, recycle={pool_recycle}s)")

    return engine


# ==================== CONNECTION MANAGEMENT ====================

def check_db_connection() -> Tuple[bool, Optional[str]]:
    """
    Check if database connection is healthy

    Returns:
        Tuple of (is_connected: bool, error_message: str or None)
    """
    if not config.is_db_configured():
        return False, "Database is not configured. Set DATABASE_URL or DB_HOST / DB_USER / DB_PASSWORD."

    try:
        engine = get_db_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True, None
    except OperationalError as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False, "Cannot connect to database. Please check your network connection."
    except Exception as e:
        logger.error(f"❌ Database error: {e}")
        return False, f"Database error: {str(e)}"


def reset_db_engine():
    """
    Reset the database engine (force new connection)

    Call this after persistent connection errors or
    when you need to reconnect with different settings.
    """
    global _engine

    with _engine_lock:
        if _engine is not None:
            _engine.dispose()
            logger.info("🔄 Database engine disposed")
            _engine = None


# ==================== CONTEXT MANAGERS ====================

@contextmanager
def get_transaction(engine: Engine = None):
    """
    Context manager for database transactions

    Usage:
        with get_transaction() as conn:
            conn.execute(text("INSERT INTO ..."))
            # Auto-commit on success, auto-rollback on exception
    """
    engine = engine or get_db_engine()
    conn = engine.connect()
    trans = conn.begin()
    try:
        yield conn
        trans.commit()
    except Exception as e:
        trans.rollback()
        logger.error(f"Transaction rolled back due to error: {e}")
        raise
    finally:
        conn.close()


# ==================== QUERY HELPERS ====================

def execute_query(query, params: Dict = None, engine: Engine = None) -> List[Dict]:
    """
    Execute SELECT query and return results as list of dicts

    Args:
        query: SQL string or text() clause
        params: Query parameters
        engine: Optional engine (defaults to the shared one)
    """
    engine = engine or get_db_engine()
    statement = text(query) if isinstance(query, str) else query

    with engine.connect() as conn:
        result = conn.execute(statement, params or {})
        return [dict(row._mapping) for row in result]


def execute_query_df(query, params: Dict = None, engine: Engine = None) -> pd.DataFrame:
    """Execute SELECT query and return results as DataFrame"""
    return pd.DataFrame(execute_query(query, params, engine))


__all__ = [
    'get_db_engine',
    'build_database_url',
    'check_db_connection',
    'reset_db_engine',
    'get_transaction',
    'execute_query',
    'execute_query_df',
]
