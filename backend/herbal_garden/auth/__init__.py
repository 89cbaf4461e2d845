"""
Authentication Module

Handles signup, login, session tokens, OTP-based password recovery and
role checks for the admin API.
"""

from .jwt_handler import TokenService
from .otp_service import OTPService
from .routes import router
from .service import AuthService

__all__ = [
    "AuthService",
    "OTPService",
    "TokenService",
    "router"
]
