"""
Logging Module for the Virtual Herbal Garden backend

Configures the stdlib root logger (colored console or JSON output, optional
rotating files) and structlog on top of it, and provides the security event
logger used by the auth flow.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import colorlog
import structlog
from pythonjsonlogger.json import JsonFormatter

# Marks handlers installed here so a second setup_logging call replaces only them
_HANDLER_MARKER = "_herbal_garden_handler"


class LogFormat(Enum):
    """Log output formats"""
    JSON = "json"
    CONSOLE = "console"


class SecurityEventType(Enum):
    """Security event types for logging"""
    SIGNUP = "signup"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    OTP_ISSUED = "otp_issued"
    OTP_DELIVERY_FAILED = "otp_delivery_failed"
    OTP_VERIFIED = "otp_verified"
    OTP_REJECTED = "otp_rejected"
    PASSWORD_RESET = "password_reset"
    PASSWORD_RESET_REJECTED = "password_reset_rejected"
    ACCESS_DENIED = "access_denied"


class CustomJSONFormatter(JsonFormatter):
    """JSON formatter with application fields"""

    def __init__(self, app_name: str = "", app_version: str = "", environment: str = "", **kwargs):
        super().__init__("%(levelname)s %(name)s %(message)s", **kwargs)
        self.app_name = app_name
        self.app_version = app_version
        self.environment = environment

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["application"] = self.app_name
        log_record["version"] = self.app_version
        log_record["environment"] = self.environment
        log_record.setdefault("level", record.levelname)


class ConsoleFormatter(colorlog.ColoredFormatter):
    """Colored formatter for console output"""

    def __init__(self):
        super().__init__(
            "%(log_color)s%(asctime)s [%(levelname)8s] %(name)s: %(message)s%(reset)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )


def _configure_structlog(log_format: str) -> None:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == LogFormat.JSON.value:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=["event"]))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logging(settings) -> None:
    """Configure root logging from settings. Safe to call more than once."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    if settings.debug:
        level = logging.DEBUG

    _configure_structlog(settings.log_format)

    json_formatter = CustomJSONFormatter(
        app_name=settings.app_name,
        app_version=settings.app_version,
        environment=settings.environment,
    )

    handlers = []
    console_handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == LogFormat.JSON.value:
        console_handler.setFormatter(json_formatter)
    else:
        console_handler.setFormatter(ConsoleFormatter())
    console_handler.setLevel(level)
    handlers.append(console_handler)

    if settings.log_directory:
        log_dir = Path(settings.log_directory)
        log_dir.mkdir(parents=True, exist_ok=True)

        handlers.append(_file_handler(log_dir / "application.log", level, json_formatter))
        handlers.append(_file_handler(log_dir / "error.log", logging.ERROR, json_formatter))

        security_handler = _file_handler(log_dir / "security.log", logging.INFO, json_formatter)
        security_handler.addFilter(lambda record: record.name.startswith("security"))
        handlers.append(security_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        setattr(handler, _HANDLER_MARKER, True)
        root_logger.addHandler(handler)

    # SQL echo goes through our handlers instead of its own
    logging.getLogger("sqlalchemy.engine").propagate = True


def mask_email(email: Optional[str]) -> Optional[str]:
    """Mask email for display (e.g., j***n@example.com)"""
    if not email:
        return email
    try:
        username, domain = email.split("@")
    except ValueError:
        return "***"
    if len(username) <= 2:
        masked_username = username[:1] + "*"
    else:
        masked_username = username[0] + "*" * (len(username) - 2) + username[-1]
    return f"{masked_username}@{domain}"


def get_security_logger():
    return structlog.get_logger("security")


def log_security_event(
    event_type: SecurityEventType,
    user_id: Optional[int] = None,
    email: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    level: int = logging.INFO,
) -> None:
    """Log a security event. Never pass OTP codes or passwords in details."""
    get_security_logger().log(
        level,
        event_type.value,
        category="security",
        user_id=user_id,
        email=mask_email(email),
        details=details or {},
    )


__all__ = [
    "LogFormat",
    "SecurityEventType",
    "CustomJSONFormatter",
    "ConsoleFormatter",
    "setup_logging",
    "mask_email",
    "get_security_logger",
    "log_security_event",
]
