"""
Persistence models for the user service.

This module defines the SQLAlchemy ``User`` model and the
``UserStatus`` enum that tracks whether a user is logged in.
"""
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Date, DateTime, Enum
import bcrypt
from userservice.base_service import Base


class UserStatus(str, enum.Enum):
    """Online state of a user."""
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """User account with credentials and profile data."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # Legacy per-user session token, kept unique but no longer used for auth
    token = Column(String, unique=True, nullable=False, default=lambda: uuid.uuid4().hex)
    birthday = Column(Date, nullable=True)
    status = Column(Enum(UserStatus), nullable=False, default=UserStatus.OFFLINE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def is_online(self) -> bool:
        return self.status == UserStatus.ONLINE

    def verify_password(self, password: str) -> bool:
        """Check if provided password matches the stored hash."""
        return bcrypt.checkpw(
            password.encode('utf-8'),
            self.password_hash.encode('utf-8')
        )

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Generate password hash using bcrypt."""
        return bcrypt.hashpw(
            password.encode('utf-8'),
            bcrypt.gensalt()
        ).decode('utf-8')
