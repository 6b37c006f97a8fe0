# fieldforce/__init__.py
"""
Field Force Dashboard Package

Shared layers used by every page:
- constants: Roles and role groupings
- metrics_engine: Return index, recruitment rhythm and sales rate
- access_control: Who can see which delegates
- config / db: Configuration and pooled database engine
- auth: Login, session timeout and page guard
- storage: Injectable key-value stores for UI state

Feature modules:
- visit_compliance
- sales_performance
- action_plans

Usage:
    from fieldforce import AuthManager, AccessControl, config
    from fieldforce.metrics_engine import compute_recruitment_rhythm
"""

from .constants import Role, FULL_ACCESS_ROLES, TEAM_ACCESS_ROLES, SELF_ACCESS_ROLES
from .exceptions import FieldForceError, NotFoundError, InvalidStateError
from .config import config, Config
from .db import (
    get_db_engine,
    check_db_connection,
    reset_db_engine,
    get_transaction,
    execute_query,
    execute_query_df,
)
from .access_control import AccessControl
from .auth import AuthManager
from .storage import MemoryStore, SessionStateStore, JsonFileStore

__all__ = [
    # Roles
    'Role',
    'FULL_ACCESS_ROLES',
    'TEAM_ACCESS_ROLES',
    'SELF_ACCESS_ROLES',

    # Errors
    'FieldForceError',
    'NotFoundError',
    'InvalidStateError',

    # Config / Database
    'config',
    'Config',
    'get_db_engine',
    'check_db_connection',
    'reset_db_engine',
    'get_transaction',
    'execute_query',
    'execute_query_df',

    # Access / Auth
    'AccessControl',
    'AuthManager',

    # Storage
    'MemoryStore',
    'SessionStateStore',
    'JsonFileStore',
]

__version__ = '1.0.0'
