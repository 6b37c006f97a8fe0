# fieldforce/config.py
"""
Centralized Configuration Management

Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Database settings validated lazily, when the engine is first created
"""

import os
import logging
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DatabaseConfig:
    """Database configuration container"""
    host: str
    port: int
    user: str
    password: str
    database: str
    driver: str = "postgresql+psycopg2"
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database,
            'driver': self.driver,
            'url': self.url,
        }

    def is_configured(self) -> bool:
        return bool(self.url) or all([self.host, self.user, self.password])


class Config:
    """
    Centralized configuration management

    Usage:
        from fieldforce.config import config

        db_config = config.get_db_config()
        ttl = config.get_app_setting("CACHE_TTL_SECONDS", 300)

        if config.is_feature_enabled("EXPORT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._load_app_config()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        db_secrets = st.secrets.get("DB_CONFIG", {})
        self._db_config = DatabaseConfig(
            host=db_secrets.get("host", ""),
            port=int(db_secrets.get("port", 5432)),
            user=db_secrets.get("user", ""),
            password=db_secrets.get("password", ""),
            database=db_secrets.get("database", "postgres"),
            driver=db_secrets.get("driver", "postgresql+psycopg2"),
            url=db_secrets.get("url"),
        )

        # Everything else is read from the process environment, which
        # Streamlit Cloud fills from top-level secrets
        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._db_config = DatabaseConfig(
            host=os.getenv("DB_HOST", ""),
            port=int(os.getenv("DB_PORT", "5432")),
            user=os.getenv("DB_USER", ""),
            password=os.getenv("DB_PASSWORD", ""),
            database=os.getenv("DB_NAME", os.getenv("DB_DATABASE", "postgres")),
            driver=os.getenv("DB_DRIVER", "postgresql+psycopg2"),
            url=os.getenv("DATABASE_URL") or None,
        )

        logger.info("💻 Running in LOCAL environment")

    def _load_app_config(self):
        """Load application-specific settings"""
        self._app_config = {
            # Session
            "SESSION_TIMEOUT_HOURS": int(os.getenv("SESSION_TIMEOUT_HOURS", "8")),

            # Business logic
            "VISIT_OVERDUE_AFTER_DAY": int(os.getenv("VISIT_OVERDUE_AFTER_DAY", "20")),
            "ALLOW_DUPLICATE_VISITS": _as_bool(os.getenv("ALLOW_DUPLICATE_VISITS"), True),

            # Database pool
            "DB_POOL_SIZE": int(os.getenv("DB_POOL_SIZE", "5")),
            "DB_POOL_RECYCLE": int(os.getenv("DB_POOL_RECYCLE", "3600")),

            # Cache
            "CACHE_TTL_SECONDS": int(os.getenv("CACHE_TTL_SECONDS", "300")),

            # UI state
            "STATUS_STORE_PATH": os.getenv("STATUS_STORE_PATH") or None,

            # Localization
            "TIMEZONE": os.getenv("TIMEZONE", "Africa/Tunis"),

            # Feature flags
            "ENABLE_EXPORT": _as_bool(os.getenv("ENABLE_EXPORT"), True),
            "ENABLE_DEBUG_MODE": _as_bool(os.getenv("ENABLE_DEBUG_MODE"), False),
        }

    def _log_config_status(self):
        """Log configuration status"""
        if self._db_config.url:
            logger.info("✅ Database: DATABASE_URL")
        elif self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        else:
            logger.warning("⚠️ Database: not configured")
        logger.info(f"✅ Export: {'Enabled' if self._app_config['ENABLE_EXPORT'] else 'Disabled'}")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration as dictionary"""
        return self._db_config.to_dict()

    def is_db_configured(self) -> bool:
        return self._db_config.is_configured()

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    def today(self) -> date:
        """Current date in the configured TIMEZONE (reporting month boundary)."""
        try:
            tz = ZoneInfo(self._app_config["TIMEZONE"])
        except (ZoneInfoNotFoundError, ValueError) as e:
            logger.warning(f"Unknown TIMEZONE {self._app_config['TIMEZONE']!r}, using server date: {e}")
            return date.today()
        return datetime.now(tz).date()

    # ==================== PROPERTIES ====================

    @property
    def db_config(self) -> Dict[str, Any]:
        return self.get_db_config()

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()

    @property
    def log_level(self) -> int:
        """DEBUG when ENABLE_DEBUG_MODE is on, INFO otherwise."""
        return logging.DEBUG if self._app_config.get("ENABLE_DEBUG_MODE") else logging.INFO


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
]
