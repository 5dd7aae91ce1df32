"""
Configuration for the Signage Scheduler
=======================================
Runtime settings loaded from environment variables, plus the logging setup.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

from signage.domain.exceptions import ConfigurationError


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("SIGNAGE_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("SIGNAGE_SECRET_KEY", "SignageDevSecretKey"))
    database_path: str = field(default_factory=lambda: os.getenv("SIGNAGE_DATABASE_PATH", "database/signage.db"))

    DEBUG: bool = field(default_factory=lambda: _env_bool("SIGNAGE_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("SIGNAGE_LOG_LEVEL", "INFO"))
    log_dir: str = field(default_factory=lambda: os.getenv("SIGNAGE_LOG_DIR", "logs"))
    audit_log_path: str = field(default_factory=lambda: os.getenv("SIGNAGE_AUDIT_LOG_PATH", "logs/audit.log"))

    # Wall-clock zone of the players; schedule times are local to it
    timezone: str = field(default_factory=lambda: os.getenv("SIGNAGE_TIMEZONE", "UTC"))

    schedule_min_duration: int = field(default_factory=lambda: _env_int("SIGNAGE_SCHEDULE_MIN_DURATION", 5))
    schedule_max_duration: int = field(default_factory=lambda: _env_int("SIGNAGE_SCHEDULE_MAX_DURATION", 1440))
    preview_max_days: int = field(default_factory=lambda: _env_int("SIGNAGE_PREVIEW_MAX_DAYS", 31))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="SignageDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set SIGNAGE_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if not 1 <= self.schedule_min_duration <= self.schedule_max_duration <= 1440:
            raise ConfigurationError(
                "SIGNAGE_SCHEDULE_MIN_DURATION and SIGNAGE_SCHEDULE_MAX_DURATION must satisfy "
                "1 <= min <= max <= 1440."
            )
        if self.preview_max_days < 1:
            raise ConfigurationError("SIGNAGE_PREVIEW_MAX_DAYS must be at least 1.")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        secret = self.secret_key or os.getenv("FLASK_SECRET_KEY", "")
        if not secret:
            raise RuntimeError(
                "Missing SIGNAGE_SECRET_KEY or FLASK_SECRET_KEY environment variable. "
                "Production systems must set an explicit secret key."
            )

        return {
            "ENV": self.environment,
            "SECRET_KEY": secret,
            "DATABASE_PATH": self.database_path,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "DEBUG": self.DEBUG,
            "SIGNAGE_TIMEZONE": self.timezone,
            "PREVIEW_MAX_DAYS": self.preview_max_days,
        }


def setup_logging(debug: bool = False, log_dir: str | None = "logs", level: str | None = None) -> None:
    """Setup logging configuration.

    ``log_dir=None`` skips the rotating file handler (tests, one-off scripts).
    """
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    if debug:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or "INFO").upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Keep existing handlers but avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "signage_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "signage_file" for h in root.handlers)
    added_handler = False

    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "signage_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_dir and not has_file:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "signage.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.name = "signage_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"signage_console", "signage_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    if _env_bool("SIGNAGE_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


def load_config() -> AppConfig:
    """Helper for callers to load and validate configuration."""
    return AppConfig()
