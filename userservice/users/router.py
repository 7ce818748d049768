"""
Users router.

Registration, listing, lookup and partial update of user profiles.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status, Response
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from userservice.base_service import BaseService, get_db_session
from userservice.auth.users import (
    UserService, UserPostDTO, UserPutDTO, UserGetDTO, LoginPostDTO
)
from userservice.auth.jwt import create_access_token, set_auth_cookie
from userservice.auth.middleware import RBACMiddleware
from userservice.content import require_json_body, require_json_accept

router = APIRouter(tags=["users"])

base_service = BaseService()


def _not_found(user_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"user with id {user_id} not found"
    )


async def _read_user_put(request: Request) -> UserPutDTO:
    try:
        return UserPutDTO.model_validate_json(await request.body())
    except ValidationError as e:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in e.errors()]
        )


@router.get(
    "/users",
    response_model=List[UserGetDTO],
    dependencies=[Depends(RBACMiddleware.authenticated()), Depends(require_json_accept)],
)
async def get_users(
    db: AsyncSession = Depends(get_db_session)
):
    """List all users."""
    try:
        users = await UserService.get_users(db)
        return [UserGetDTO.from_user(user) for user in users]
    except Exception as e:
        base_service.log_error(e, context="Get users")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve users: " + str(e)
        )


@router.get(
    "/users/{user_id}",
    response_model=UserGetDTO,
    dependencies=[Depends(RBACMiddleware.authenticated()), Depends(require_json_accept)],
)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Get a single user.

    Raises:
        HTTPException: 404 if the user does not exist
    """
    try:
        user = await UserService.get_user_by_id(user_id, db)
        if user is None:
            raise _not_found(user_id)
        return UserGetDTO.from_user(user)
    except HTTPException:
        raise
    except Exception as e:
        base_service.log_error(e, context="Get user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get user information: " + str(e)
        )


@router.post(
    "/users",
    response_model=UserGetDTO,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_json_accept), Depends(require_json_body)],
)
async def create_user(
    user_data: UserPostDTO,
    response: Response,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Register a new user and log them in.

    Args:
        user_data: Name, username and password
        response: Response the session cookie is written to
        db: Database session

    Returns:
        The created user, already online
    """
    try:
        created = await UserService.register_user(user_data, db)

        base_service.log_event("user.registered", {
            "username": created.username,
            "id": created.id
        })

        user = await UserService.authenticate_user(
            LoginPostDTO(username=user_data.username, password=user_data.password),
            db
        )
        set_auth_cookie(response, create_access_token(user.id))
        return UserGetDTO.from_user(user)
    except HTTPException:
        raise
    except Exception as e:
        base_service.log_error(e, context="User registration")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed: " + str(e)
        )


@router.put(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(RBACMiddleware.authenticated()), Depends(require_json_body)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": UserPutDTO.model_json_schema()}},
        }
    },
)
async def update_user(
    user_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Update username and/or birthday of a user. Fields that are absent or
    null keep their value.

    The body is read here rather than declared as a parameter so that the
    role and content-type checks run before it is parsed.

    Raises:
        HTTPException: 404 if the user does not exist, 409 if the username is taken
        RequestValidationError: malformed or invalid body (400)
    """
    update_data = await _read_user_put(request)
    try:
        updated = await UserService.update_user(user_id, update_data, db)
        if updated is None:
            raise _not_found(user_id)

        base_service.log_event("user.updated", {
            "id": user_id,
            "fields_updated": list(update_data.model_dump(exclude_none=True).keys())
        })

        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException:
        raise
    except Exception as e:
        base_service.log_error(e, context="Update user")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user: " + str(e)
        )
