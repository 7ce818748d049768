"""
Authentication router.

This module provides the FastAPI router for session endpoints:
- Login with a session cookie
- Login with a bearer token in the response body
- Logout
"""
from fastapi import APIRouter, Depends, HTTPException, status, Response
from sqlalchemy.ext.asyncio import AsyncSession

from userservice.base_service import BaseService, get_db_session
from userservice.auth.users import (
    UserService, LoginPostDTO, UserGetDTO, LoginResponse
)
from userservice.auth.jwt import create_access_token, set_auth_cookie, clear_auth_cookie
from userservice.auth.middleware import RBACMiddleware, Principal
from userservice.content import require_json_body, require_json_accept

# Create router
router = APIRouter(tags=["auth"])

# Create service instance
base_service = BaseService()


@router.post(
    "/login",
    response_model=UserGetDTO,
    dependencies=[Depends(require_json_accept), Depends(require_json_body)],
)
async def login(
    login_data: LoginPostDTO,
    response: Response,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Authenticate a user and set the session cookie.

    Args:
        login_data: Username and password
        response: Response the cookie is written to
        db: Database session

    Returns:
        The logged-in user
    """
    try:
        user = await UserService.authenticate_user(login_data, db)
        set_auth_cookie(response, create_access_token(user.id))

        base_service.log_event("user.login", {
            "username": user.username,
            "id": user.id
        })

        return UserGetDTO.from_user(user)
    except HTTPException as e:
        base_service.log_event("user.login.failed", {
            "username": login_data.username,
            "reason": str(e.detail)
        })
        raise
    except Exception as e:
        base_service.log_error(e, context="User login")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed: " + str(e)
        )


@router.post(
    "/token",
    response_model=LoginResponse,
    dependencies=[Depends(require_json_accept), Depends(require_json_body)],
)
async def login_for_token(
    login_data: LoginPostDTO,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Authenticate a user and return a bearer token with the user id.

    Args:
        login_data: Username and password
        db: Database session

    Returns:
        LoginResponse with the access token
    """
    try:
        user = await UserService.authenticate_user(login_data, db)

        base_service.log_event("user.login", {
            "username": user.username,
            "id": user.id
        })

        return LoginResponse(
            user_id=user.id,
            access_token=create_access_token(user.id)
        )
    except HTTPException as e:
        base_service.log_event("user.login.failed", {
            "username": login_data.username,
            "reason": str(e.detail)
        })
        raise
    except Exception as e:
        base_service.log_error(e, context="Token login")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed: " + str(e)
        )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    principal: Principal = Depends(RBACMiddleware.authenticated()),
    db: AsyncSession = Depends(get_db_session)
):
    """
    Mark the current user offline and clear the session cookie.

    Args:
        principal: Authenticated principal
        db: Database session
    """
    try:
        await UserService.logout_user(principal.user_id, db)

        base_service.log_event("user.logout", {"id": principal.user_id})

        response = Response(status_code=status.HTTP_204_NO_CONTENT)
        clear_auth_cookie(response)
        return response
    except HTTPException:
        raise
    except Exception as e:
        base_service.log_error(e, context="User logout")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Logout failed: " + str(e)
        )
