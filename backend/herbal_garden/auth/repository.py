from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import User
from ..exceptions import DuplicateEmailError

logger = logging.getLogger(__name__)


class UserRepository:
    """Durable user records and their OTP state. Every write is one row, one commit."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def create_user(self, full_name: str, email: str, role: str, password_hash: str) -> int:
        """Insert a user; the UNIQUE(email) constraint is the authority on duplicates"""
        user = User(
            full_name=full_name,
            email=email,
            role=role,
            password_hash=password_hash,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Signup rejected by unique email constraint")
            raise DuplicateEmailError()

        self.db.refresh(user)
        return user.id

    def set_otp(self, user_id: int, code: str, expires_at: datetime) -> None:
        self.db.query(User).filter(User.id == user_id).update(
            {"otp_code": code, "otp_expires_at": expires_at},
            synchronize_session="fetch",
        )
        self.db.commit()

    def clear_otp(self, user_id: int) -> None:
        self.db.query(User).filter(User.id == user_id).update(
            {"otp_code": None, "otp_expires_at": None},
            synchronize_session="fetch",
        )
        self.db.commit()

    def update_password(self, user_id: int, password_hash: str, clear_otp: bool = True) -> None:
        changes = {"password_hash": password_hash}
        if clear_otp:
            changes.update({"otp_code": None, "otp_expires_at": None})

        self.db.query(User).filter(User.id == user_id).update(
            changes, synchronize_session="fetch"
        )
        self.db.commit()
