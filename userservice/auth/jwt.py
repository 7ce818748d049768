"""
JWT token handling for authentication.

This module provides functionality for:
- Creating signed session tokens
- Validating session tokens
- Writing and clearing the session cookie
"""
import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    InvalidSignatureError,
    PyJWTError,
)
from fastapi import Response
from pydantic import BaseModel

# JWT Configuration
SECRET_KEY = os.getenv(
    "JWT_SECRET_KEY",
    "dev-only-secret-change-me-dev-only-secret-change-me-dev-only-secret-change-me",
)
ALGORITHM = "HS512"
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", 24))
JWT_COOKIE_NAME = os.getenv("JWT_COOKIE_NAME", "user_session")

logger = logging.getLogger("userservice.auth.jwt")


class TokenData(BaseModel):
    """Token payload model."""
    user_id: int
    exp: Optional[int] = None
    iat: Optional[int] = None


def create_access_token(
    user_id: int,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed JWT for a user.

    Args:
        user_id: ID of the user, stored as the token subject
        expires_delta: Custom lifetime, defaults to JWT_EXPIRATION_HOURS

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.now(timezone.utc)
    expires = issued_at + (expires_delta or timedelta(hours=JWT_EXPIRATION_HOURS))
    to_encode = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": expires,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[TokenData]:
    """
    Verify a JWT token and return its data.

    Args:
        token: JWT token string

    Returns:
        TokenData if valid, None otherwise
    """
    if not token:
        logger.warning("JWT claims string is empty")
        return None
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return TokenData(
            user_id=int(payload.get("sub")),
            exp=payload.get("exp"),
            iat=payload.get("iat"),
        )
    except ExpiredSignatureError as e:
        logger.warning(f"JWT token is expired: {e}")
    except InvalidSignatureError as e:
        logger.warning(f"Invalid JWT signature: {e}")
    except DecodeError as e:
        logger.warning(f"Invalid JWT token: {e}")
    except PyJWTError as e:
        logger.warning(f"JWT token is unsupported: {e}")
    except (ValueError, TypeError):
        # sub missing or not an integer
        logger.warning("JWT subject is not a user id")
    return None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return None
    return parts[1]


def set_auth_cookie(response: Response, token: str) -> None:
    """Attach the session token as a cookie readable by browser clients."""
    response.set_cookie(
        key=JWT_COOKIE_NAME,
        value=token,
        max_age=JWT_EXPIRATION_HOURS * 60 * 60,
        httponly=False,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=JWT_COOKIE_NAME, path="/")
