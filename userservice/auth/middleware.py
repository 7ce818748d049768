"""
Authentication middleware.

This module provides:
- The request filter that rebuilds the principal from a JWT (header or cookie)
- Role-based access control dependencies
"""
import enum
import logging
from typing import List, Optional
from fastapi import Request, HTTPException, status, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from userservice.auth.jwt import JWT_COOKIE_NAME, extract_bearer_token, verify_token
from userservice.auth.models import User
from userservice.base_service import get_db_session

logger = logging.getLogger("userservice.auth.middleware")


class Authorities(str, enum.Enum):
    ROLE_USER = "ROLE_USER"


class Principal(BaseModel):
    """Authenticated identity attached to a request."""
    user_id: int
    username: str
    roles: List[str] = []


def _token_from_request(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if authorization is not None:
        return extract_bearer_token(authorization)
    return request.cookies.get(JWT_COOKIE_NAME)


async def authenticate_request(
    request: Request,
    db: AsyncSession = Depends(get_db_session)
) -> Optional[Principal]:
    """
    Request filter installed for every route.

    Resolves the JWT from the ``Authorization`` header (or, without one,
    the session cookie) to a user and stores the principal on
    ``request.state.principal``. A missing or invalid token leaves the
    request unauthenticated; rejection is left to ``RBACMiddleware``.
    """
    request.state.principal = None

    token = _token_from_request(request)
    if token is None:
        logger.debug("not authenticated")
        return None

    token_data = verify_token(token)
    if token_data is None:
        return None

    user = await db.get(User, token_data.user_id)
    if user is None:
        logger.warning(f"User {token_data.user_id} not found")
        return None

    principal = Principal(
        user_id=user.id,
        username=user.username,
        roles=[Authorities.ROLE_USER.value],
    )
    request.state.principal = principal
    return principal


class RBACMiddleware:
    """
    Role-Based Access Control middleware.

    Creates FastAPI dependencies for protecting routes based on:
    - User authentication
    - Role requirements
    """

    @staticmethod
    def has_roles(roles: List[str]):
        """
        Dependency to check if the principal has any of the specified roles.

        Args:
            roles: List of required role names (any match is sufficient)

        Returns:
            Dependency function
        """
        async def verify_roles(
            principal: Optional[Principal] = Depends(authenticate_request)
        ) -> Principal:
            if principal is None:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Not authenticated",
                    headers={"WWW-Authenticate": "Bearer"},
                )

            if not any(role in principal.roles for role in roles):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Role required: {', '.join(roles)}",
                )

            return principal

        return verify_roles

    @staticmethod
    def authenticated():
        """Dependency requiring the default user role."""
        return RBACMiddleware.has_roles([Authorities.ROLE_USER.value])
