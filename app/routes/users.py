"""
DevOps Learning API: User Route Handlers
========================================

What:  CRUD endpoints for the User resource under /api/users.
How:   Each handler takes the request body / path id, delegates to
       UserService, and wraps the result in the response envelope.
       Failures are raised as app exceptions and rendered by the global
       handlers in main.py.
"""

import logging
from typing import Any, List

from fastapi import APIRouter, Body, Depends

from app.database import get_user_service
from app.models.user import User
from app.schemas.envelope import Envelope, ErrorResponse
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])

_ERRORS = {
    400: {"description": "Invalid payload or duplicate email", "model": ErrorResponse},
    404: {"description": "User not found", "model": ErrorResponse},
    500: {"description": "Database error", "model": ErrorResponse},
}


@router.get(
    "/users",
    response_model=Envelope[List[User]],
    response_model_exclude_none=True,
    responses={500: _ERRORS[500]},
    summary="List all users",
)
async def list_users(
    service: UserService = Depends(get_user_service),
) -> Envelope[List[User]]:
    users = await service.list_all()
    return Envelope[List[User]](
        success=True,
        message="Users retrieved successfully",
        data=users,
        count=len(users),
    )


@router.post(
    "/users",
    status_code=201,
    response_model=Envelope[User],
    response_model_exclude_none=True,
    responses={400: _ERRORS[400], 500: _ERRORS[500]},
    summary="Create a user",
    description=(
        "Creates a user from name, email, optional age, and optional role "
        "(user, admin, moderator). Email is stored trimmed and lower-cased and "
        "must be unique. Unknown fields are ignored."
    ),
)
async def create_user(
    payload: Any = Body(default=None),
    service: UserService = Depends(get_user_service),
) -> Envelope[User]:
    user = await service.create(payload)
    return Envelope[User](success=True, message="User created successfully", data=user)


@router.get(
    "/users/{user_id}",
    response_model=Envelope[User],
    response_model_exclude_none=True,
    responses={404: _ERRORS[404], 500: _ERRORS[500]},
    summary="Get a user by id",
)
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> Envelope[User]:
    user = await service.get_by_id(user_id)
    return Envelope[User](success=True, message="User retrieved successfully", data=user)


@router.put(
    "/users/{user_id}",
    response_model=Envelope[User],
    response_model_exclude_none=True,
    responses=_ERRORS,
    summary="Partially update a user",
    description=(
        "Updates any of name, email, age, role. Fields not supplied keep their "
        "values; sending age as null clears it."
    ),
)
async def update_user(
    user_id: str,
    changes: Any = Body(default=None),
    service: UserService = Depends(get_user_service),
) -> Envelope[User]:
    user = await service.update_by_id(user_id, changes)
    return Envelope[User](success=True, message="User updated successfully", data=user)


@router.delete(
    "/users/{user_id}",
    response_model=Envelope[User],
    response_model_exclude_none=True,
    responses={404: _ERRORS[404], 500: _ERRORS[500]},
    summary="Delete a user",
)
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> Envelope[User]:
    user = await service.delete_by_id(user_id)
    return Envelope[User](success=True, message="User deleted successfully", data=user)
