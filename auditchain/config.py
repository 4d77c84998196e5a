"""
Runtime configuration from environment variables.

A .env file is loaded first (existing variables win), then Settings are
read from the process environment.

Environment Variables:
    AUDITCHAIN_DATABASE_URL: SQLAlchemy URL (else built from DB_HOST/DB_NAME/
        DB_USER/DB_PASS, else sqlite:///audit.db)
    AUDITCHAIN_TABLE: Audit table name - default: secure_audit_trails
    APP_KEY: Encryption secret
    AUDITCHAIN_KEY_BACKUP_DIR: Directory for key_backup_*.key files - default: .
    AMQP_HOST / AMQP_PORT / AMQP_USER / AMQP_PASSWORD / AMQP_QUEUE
    ALERT_EMAIL_TO / ALERT_EMAIL_FROM / SMTP_HOST / SMTP_PORT
    TELEGRAM_TOKEN / TELEGRAM_CHAT_ID
    AUDITCHAIN_ALERT_TIMEOUT: Seconds per alert transport - default: 5
    AUDITCHAIN_LOG_LEVEL / AUDITCHAIN_LOG_FORMAT
    AUDITCHAIN_METRICS_ENABLED / AUDITCHAIN_METRICS_PORT
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv

from .core.errors import MisuseError

logger = logging.getLogger(__name__)

DEFAULT_APP_KEY = "default_secure_key"


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    val = env.get(key)
    if val is None or val == "":
        return default
    try:
        return int(val)
    except ValueError:
        raise MisuseError(f"{key} must be an integer, got {val!r}")


def _database_url(env: Mapping[str, str]) -> str:
    url = env.get("AUDITCHAIN_DATABASE_URL")
    if url:
        return url
    host = env.get("DB_HOST")
    if host:
        user = quote_plus(env.get("DB_USER", ""))
        password = quote_plus(env.get("DB_PASS", ""))
        name = env.get("DB_NAME", "audit")
        return f"mysql+pymysql://{user}:{password}@{host}/{name}?charset=utf8mb4"
    return "sqlite:///audit.db"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///audit.db"
    table_name: str = "secure_audit_trails"
    app_key: str = DEFAULT_APP_KEY
    key_backup_dir: str = "."
    amqp_host: str = "localhost"
    amqp_port: int = 5672
    amqp_user: str = "guest"
    amqp_password: str = "guest"
    amqp_queue: str = "audit_events"
    alert_email_to: Optional[str] = None
    alert_email_from: str = "auditchain@localhost"
    smtp_host: str = "localhost"
    smtp_port: int = 25
    telegram_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    alert_timeout: int = 5
    log_level: str = "INFO"
    log_format: str = "text"
    metrics_enabled: bool = False
    metrics_port: int = 9108

    @property
    def uses_default_key(self) -> bool:
        return self.app_key == DEFAULT_APP_KEY

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return Settings(
            database_url=_database_url(env),
            table_name=env.get("AUDITCHAIN_TABLE", "secure_audit_trails"),
            app_key=env.get("APP_KEY") or DEFAULT_APP_KEY,
            key_backup_dir=env.get("AUDITCHAIN_KEY_BACKUP_DIR", "."),
            amqp_host=env.get("AMQP_HOST", "localhost"),
            amqp_port=_int(env, "AMQP_PORT", 5672),
            amqp_user=env.get("AMQP_USER", "guest"),
            amqp_password=env.get("AMQP_PASSWORD", "guest"),
            amqp_queue=env.get("AMQP_QUEUE", "audit_events"),
            alert_email_to=env.get("ALERT_EMAIL_TO") or None,
            alert_email_from=env.get("ALERT_EMAIL_FROM", "auditchain@localhost"),
            smtp_host=env.get("SMTP_HOST", "localhost"),
            smtp_port=_int(env, "SMTP_PORT", 25),
            telegram_token=env.get("TELEGRAM_TOKEN") or None,
            telegram_chat_id=env.get("TELEGRAM_CHAT_ID") or None,
            alert_timeout=_int(env, "AUDITCHAIN_ALERT_TIMEOUT", 5),
            log_level=env.get("AUDITCHAIN_LOG_LEVEL", "INFO").upper(),
            log_format=env.get("AUDITCHAIN_LOG_FORMAT", "text").lower(),
            metrics_enabled=env.get("AUDITCHAIN_METRICS_ENABLED", "false").lower() == "true",
            metrics_port=_int(env, "AUDITCHAIN_METRICS_PORT", 9108),
        )


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load .env (without overriding the environment) and build Settings.

    Args:
        env_file: Explicit .env path; default searches from the working dir
    """
    load_dotenv(dotenv_path=env_file, override=False)
    settings = Settings.from_env()
    if settings.uses_default_key:
        logger.warning("APP_KEY not set, using the built-in default secret")
    return settings
