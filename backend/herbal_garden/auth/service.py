"""
Auth flow controller: signup, login, forgot-password, verify-otp and
reset-password.

Each operation is synchronous and blocking (bcrypt, SQL, SMTP); the HTTP
layer runs them in the thread pool.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol
import logging

from ..config import VALID_ROLES
from ..core.logger import SecurityEventType, log_security_event
from ..core.security import PasswordHasher
from ..database import User
from ..exceptions import (
    DeliveryFailedError,
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidOrExpiredOtpError,
    PasswordMismatchError,
    UserNotFoundError,
    ValidationError,
)
from .jwt_handler import TokenService
from .otp_service import OTPService
from .repository import UserRepository
from .utils import is_blank

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def send(self, destination: str, code: str, full_name: Optional[str] = None) -> bool:
        ...


@dataclass
class LoginResult:
    token: str
    user: Dict[str, Any]


def public_user(user: User) -> Dict[str, Any]:
    """Projection of a user that is safe to return to clients"""
    return {
        "id": user.id,
        "fullName": user.full_name,
        "email": user.email,
        "role": user.role,
    }


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        tokens: TokenService,
        otps: OTPService,
        notifier: Notifier,
        hasher: PasswordHasher,
        reset_requires_otp: bool = False,
    ):
        self.users = users
        self.tokens = tokens
        self.otps = otps
        self.notifier = notifier
        self.hasher = hasher
        self.reset_requires_otp = reset_requires_otp

    def signup(self, full_name: str, email: str, role: str, password: str) -> int:
        if any(is_blank(value) for value in (full_name, email, role, password)):
            raise ValidationError("All fields are required")
        if role not in VALID_ROLES:
            raise ValidationError("Invalid role")

        # Fast path only; the unique constraint decides under concurrency
        if self.users.find_by_email(email) is not None:
            raise DuplicateEmailError()

        user_id = self.users.create_user(
            full_name.strip(), email, role, self.hasher.hash_password(password)
        )
        log_security_event(SecurityEventType.SIGNUP, user_id=user_id, email=email,
                           details={"role": role})
        return user_id

    def login(self, email: str, password: str) -> LoginResult:
        if is_blank(email) or is_blank(password):
            raise ValidationError("Email and password are required")

        user = self.users.find_by_email(email)
        if user is None:
            self.hasher.dummy_verify()
            log_security_event(SecurityEventType.LOGIN_FAILURE, email=email,
                               details={"reason": "unknown_email"}, level=logging.WARNING)
            raise InvalidCredentialsError()

        if not self.hasher.verify_password(password, user.password_hash):
            log_security_event(SecurityEventType.LOGIN_FAILURE, user_id=user.id, email=email,
                               details={"reason": "bad_password"}, level=logging.WARNING)
            raise InvalidCredentialsError()

        token = self.tokens.issue({"id": user.id, "email": user.email, "role": user.role})
        log_security_event(SecurityEventType.LOGIN_SUCCESS, user_id=user.id, email=email)
        return LoginResult(token=token, user=public_user(user))

    def forgot_password(self, email: str) -> None:
        if is_blank(email):
            raise ValidationError("Email is required")

        user = self.users.find_by_email(email)
        if user is None:
            raise UserNotFoundError("Email not found")

        code = self.otps.issue(user)
        log_security_event(SecurityEventType.OTP_ISSUED, user_id=user.id, email=email)

        try:
            delivered = self.notifier.send(user.email, code, full_name=user.full_name)
        except Exception as e:
            logger.error(f"Notifier raised while sending OTP for user {user.id}: {e}", exc_info=True)
            delivered = False

        if not delivered:
            log_security_event(SecurityEventType.OTP_DELIVERY_FAILED, user_id=user.id,
                               email=email, level=logging.ERROR)
            raise DeliveryFailedError(details={"user_id": user.id})

    def verify_otp(self, email: str, code: str) -> None:
        if is_blank(email) or is_blank(code):
            raise ValidationError("Email and OTP are required")

        user = self.users.find_by_email(email)
        if not self.otps.verify(user, code):
            log_security_event(SecurityEventType.OTP_REJECTED,
                               user_id=user.id if user else None, email=email,
                               level=logging.WARNING)
            raise InvalidOrExpiredOtpError()

        log_security_event(SecurityEventType.OTP_VERIFIED, user_id=user.id, email=email)

    def reset_password(
        self,
        email: str,
        new_password: str,
        confirm_new_password: str,
        otp: Optional[str] = None,
    ) -> None:
        if any(is_blank(value) for value in (email, new_password, confirm_new_password)):
            raise ValidationError("All fields are required")
        if new_password != confirm_new_password:
            raise PasswordMismatchError()

        user = self.users.find_by_email(email)
        if user is None:
            raise UserNotFoundError("User not found")

        if self.reset_requires_otp and not self.otps.verify(user, otp):
            log_security_event(SecurityEventType.PASSWORD_RESET_REJECTED, user_id=user.id,
                               email=email, level=logging.WARNING)
            raise InvalidOrExpiredOtpError()

        self.users.update_password(user.id, self.hasher.hash_password(new_password), clear_otp=True)
        log_security_event(SecurityEventType.PASSWORD_RESET, user_id=user.id, email=email)
