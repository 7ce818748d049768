"""
User management service.

This module provides functionality for:
- User registration
- User authentication (login and logout)
- User profile retrieval and update
"""
import re
from typing import Optional, List
from datetime import date, datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from userservice.auth.models import User, UserStatus

# bcrypt only considers the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72
CREATION_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"
BIRTHDAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_creation_date(value: datetime) -> str:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.strftime(CREATION_DATE_FORMAT)


def _not_blank(v: str) -> str:
    if not v.strip():
        raise ValueError('must not be blank')
    return v


# Pydantic models for request validation
class UserPostDTO(BaseModel):
    """Model for user registration."""
    name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator('name', 'username')
    @classmethod
    def must_not_be_blank(cls, v):
        return _not_blank(v)

    @field_validator('password')
    @classmethod
    def password_must_fit_hash(cls, v):
        if len(v.encode('utf-8')) > MAX_PASSWORD_BYTES:
            raise ValueError(f'Password must be at most {MAX_PASSWORD_BYTES} bytes')
        return _not_blank(v)


class LoginPostDTO(BaseModel):
    """Model for user login."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator('username', 'password')
    @classmethod
    def must_not_be_blank(cls, v):
        return _not_blank(v)


class UserPutDTO(BaseModel):
    """Model for a partial profile update. Absent or null fields are kept."""
    username: Optional[str] = None
    birthday: Optional[date] = None

    @field_validator('username')
    @classmethod
    def username_must_not_be_blank(cls, v):
        if v is not None:
            return _not_blank(v)
        return v

    @field_validator('birthday', mode='before')
    @classmethod
    def birthday_must_be_iso_date(cls, v):
        if v is None or (isinstance(v, date) and not isinstance(v, datetime)):
            return v
        if not isinstance(v, str) or not BIRTHDAY_PATTERN.match(v):
            raise ValueError('Birthday must be a date formatted as YYYY-MM-DD')
        return date.fromisoformat(v)


class UserGetDTO(BaseModel):
    """Model for user information returned to clients."""
    id: int
    name: str
    username: str
    birthday: Optional[date] = None
    status: UserStatus
    logged_in: bool
    creation_date: str

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def from_user(cls, user: User) -> "UserGetDTO":
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            birthday=user.birthday,
            status=user.status,
            logged_in=user.is_online,
            creation_date=format_creation_date(user.created_at),
        )


class LoginResponse(BaseModel):
    """Model for a bearer-token login."""
    user_id: int
    access_token: str
    token_type: str = "bearer"


def _username_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Username already registered"
    )


class UserService:
    """
    Service for user management operations.
    """
    @staticmethod
    async def register_user(
        user_data: UserPostDTO,
        db: AsyncSession
    ) -> User:
        """
        Register a new user. The user starts out offline.

        Raises:
            HTTPException: 409 if the username already exists
        """
        result = await db.execute(
            select(User).where(User.username == user_data.username)
        )
        if result.scalar_one_or_none() is not None:
            raise _username_taken()

        new_user = User(
            name=user_data.name,
            username=user_data.username,
            password_hash=User.get_password_hash(user_data.password),
            status=UserStatus.OFFLINE,
        )
        db.add(new_user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise _username_taken()
        await db.refresh(new_user)
        return new_user

    @staticmethod
    async def authenticate_user(
        login_data: LoginPostDTO,
        db: AsyncSession
    ) -> User:
        """
        Check credentials and mark the user online.

        Raises:
            HTTPException: 401 if the username is unknown or the password is wrong
        """
        result = await db.execute(
            select(User).where(User.username == login_data.username)
        )
        user = result.scalar_one_or_none()

        if user is None or not user.verify_password(login_data.password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        user.status = UserStatus.ONLINE
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def logout_user(
        user_id: int,
        db: AsyncSession
    ) -> User:
        """
        Mark the user offline.

        Raises:
            HTTPException: 401 if the user no longer exists
        """
        user = await db.get(User, user_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found",
                headers={"WWW-Authenticate": "Bearer"},
            )
        user.status = UserStatus.OFFLINE
        await db.commit()
        return user

    @staticmethod
    async def get_user_by_id(
        user_id: int,
        db: AsyncSession
    ) -> Optional[User]:
        return await db.get(User, user_id)

    @staticmethod
    async def get_users(db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    @staticmethod
    async def update_user(
        user_id: int,
        update_data: UserPutDTO,
        db: AsyncSession
    ) -> Optional[User]:
        """
        Update username and/or birthday.

        Args:
            user_id: User ID
            update_data: Fields to change; None values are ignored

        Returns:
            Updated user or None if not found

        Raises:
            HTTPException: 409 if the new username belongs to another user
        """
        user = await db.get(User, user_id)
        if user is None:
            return None

        if update_data.username is not None:
            result = await db.execute(
                select(User).where(
                    User.username == update_data.username,
                    User.id != user_id
                )
            )
            if result.scalar_one_or_none() is not None:
                raise _username_taken()
            user.username = update_data.username

        if update_data.birthday is not None:
            user.birthday = update_data.birthday

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise _username_taken()
        await db.refresh(user)
        return user
