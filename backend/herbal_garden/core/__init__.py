"""
Core Module

Shared infrastructure: logging setup, security event logging and password
hashing.
"""

from .logger import SecurityEventType, log_security_event, mask_email, setup_logging
from .security import PasswordHasher

__all__ = [
    "PasswordHasher",
    "SecurityEventType",
    "log_security_event",
    "mask_email",
    "setup_logging",
]
