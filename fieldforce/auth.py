# fieldforce/auth.py
"""
Authentication Manager for the Field Force Dashboard

Features:
- SHA256 password hashing with per-user salt
- Principal (id, role, supervisor) read from profiles
- Session management with timeout
- Login guard for pages
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

import streamlit as st
from sqlalchemy import text

from .config import config
from .constants import Role

logger = logging.getLogger(__name__)

SESSION_KEYS = [
    'authenticated', 'user_id', 'user_email', 'user_role',
    'user_fullname', 'supervisor_id', 'login_time', 'debug_mode',
]


class AuthManager:
    """Authentication manager for Streamlit pages"""

    def __init__(self):
        self.session_timeout = timedelta(
            hours=config.get_app_setting("SESSION_TIMEOUT_HOURS", 8)
        )

    # ==================== PASSWORD HASHING ====================

    def hash_password(self, password: str, salt: str = None) -> Tuple[str, str]:
        """
        Hash password with SHA256 + salt

        Returns:
            Tuple of (hash, salt)
        """
        if not salt:
            salt = secrets.token_hex(32)

        pwd_hash = hashlib.sha256((password + salt).encode()).hexdigest()
        return pwd_hash, salt

    def verify_password(self, password: str, stored_hash: str, salt: str) -> bool:
        if not stored_hash or not salt:
            return False
        pwd_hash, _ = self.hash_password(password, salt)
        return secrets.compare_digest(pwd_hash, stored_hash)

    # ==================== AUTHENTICATION ====================

    def authenticate(self, email: str, password: str, engine=None) -> Tuple[bool, Dict]:
        """
        Authenticate a user against profiles.

        Returns:
            Tuple of (success, user_info or {"error": message})
        """
        try:
            if engine is None:
                from .db import get_db_engine
                engine = get_db_engine()

            query = text("""
                SELECT
                    id,
                    email,
                    role,
                    supervisor_id,
                    password_hash,
                    password_salt,
                    first_name || ' ' || last_name AS full_name
                FROM profiles
                WHERE LOWER(email) = LOWER(:email)
            """)

            with engine.connect() as conn:
                result = conn.execute(query, {'email': email.strip()}).fetchone()

            if not result:
                logger.warning(f"Login attempt for unknown email: {email}")
                return False, {"error": "Invalid email or password"}

            user = dict(result._mapping)

            if not self.verify_password(password, user['password_hash'], user['password_salt']):
                logger.warning(f"Invalid password for user: {email}")
                return False, {"error": "Invalid email or password"}

            if Role.parse(user['role']) is None:
                logger.warning(f"User {email} has unknown role {user['role']!r}")
                return False, {"error": "Your account has no valid role. Please contact an administrator."}

            logger.info(f"User {email} authenticated successfully")

            return True, {
                'id': str(user['id']),
                'email': user['email'],
                'role': Role.parse(user['role']).value,
                'supervisor_id': str(user['supervisor_id']) if user['supervisor_id'] else None,
                'full_name': user['full_name'] or user['email'],
                'login_time': datetime.now(),
            }

        except Exception as e:
            logger.error(f"Authentication error: {e}")
            return False, {"error": "Authentication failed. Please try again."}

    # ==================== SESSION MANAGEMENT ====================

    def check_session(self) -> bool:
        """Check if user session is valid and not expired"""
        if not st.session_state.get('authenticated'):
            return False

        login_time = st.session_state.get('login_time')
        if login_time and datetime.now() - login_time > self.session_timeout:
            logger.info(f"Session expired for user: {st.session_state.get('user_email')}")
            self.logout()
            return False

        return True

    def login(self, user_info: Dict):
        """Initialize user session after successful authentication"""
        st.session_state.authenticated = True
        st.session_state.user_id = user_info['id']
        st.session_state.user_email = user_info['email']
        st.session_state.user_role = user_info['role']
        st.session_state.user_fullname = user_info['full_name']
        st.session_state.supervisor_id = user_info.get('supervisor_id')
        st.session_state.login_time = user_info['login_time']
        st.session_state.debug_mode = False

        logger.info(f"User {user_info['email']} ({user_info['role']}) logged in")

    def logout(self):
        """Clear user session and cache"""
        email = st.session_state.get('user_email', 'Unknown')

        for key in SESSION_KEYS:
            if key in st.session_state:
                del st.session_state[key]

        st.cache_data.clear()
        logger.info(f"User {email} logged out")

    # ==================== ACCESS CONTROL ====================

    def require_auth(self) -> bool:
        """Stop the page unless a valid session exists."""
        if not self.check_session():
            st.warning("⚠️ Please login to access this page")
            st.info("Go to the main page to login")
            st.stop()
            return False
        return True

    # ==================== USER INFO HELPERS ====================

    def get_role(self) -> Optional[Role]:
        return Role.parse(st.session_state.get('user_role'))

    def get_user_id(self) -> Optional[str]:
        return st.session_state.get('user_id')

    def get_user_display_name(self) -> str:
        return st.session_state.get('user_fullname') or st.session_state.get('user_email', 'User')

    def get_principal(self):
        """The signed-in user as an action-plan Principal."""
        from .action_plans.models import Principal
        return Principal.create(
            self.get_user_id(),
            st.session_state.get('user_role'),
            st.session_state.get('supervisor_id'),
        )


__all__ = [
    'AuthManager',
]
