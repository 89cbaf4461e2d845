"""
Password hashing for user credentials.

Wraps a passlib bcrypt context so the work factor comes from settings and
verification never raises on a malformed stored hash.
"""

from passlib.context import CryptContext
import structlog

logger = structlog.get_logger(__name__)


class PasswordHasher:
    """Password hashing and verification utilities"""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt"""
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning("password_hash_unreadable", error=str(e))
            return False

    def dummy_verify(self) -> None:
        """Spend the same time as a real verify when there is no user to check against"""
        self.pwd_context.dummy_verify()
