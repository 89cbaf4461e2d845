from datetime import datetime, timedelta
from typing import Callable, Optional
import logging
import secrets

from ..database import User, utcnow
from .repository import UserRepository
from .utils import validate_otp_format

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


class OTPService:
    """One-time codes for password recovery.

    State lives on the user row: no code (otp_code and otp_expires_at both
    null) or a pending code (both set). Issuing overwrites any pending code.
    Verifying never clears it; only a password reset or clear() does.
    """

    def __init__(
        self,
        repository: UserRepository,
        ttl_minutes: int = 10,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.ttl = timedelta(minutes=ttl_minutes)
        self.clock = clock or utcnow

    @staticmethod
    def generate_code() -> str:
        """Uniform over [100000, 999999], so always six digits"""
        return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))

    def issue(self, user: User) -> str:
        code = self.generate_code()
        expires_at = self.clock() + self.ttl
        self.repository.set_otp(user.id, code, expires_at)
        logger.debug(f"OTP issued for user {user.id}, expires at {expires_at.isoformat()}")
        return code

    def is_pending(self, user: User) -> bool:
        return user.otp_code is not None and user.otp_expires_at is not None

    def verify(self, user: Optional[User], supplied_code: Optional[str]) -> bool:
        if user is None or not self.is_pending(user):
            return False
        if not isinstance(supplied_code, str) or not validate_otp_format(supplied_code):
            return False
        if supplied_code != user.otp_code:
            return False
        return self.clock() < user.otp_expires_at

    def clear(self, user: User) -> None:
        self.repository.clear_otp(user.id)
