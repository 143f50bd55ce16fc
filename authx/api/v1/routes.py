"""
API v1 routes.

Defines REST endpoints for user registration, login and profile lookup.
Handlers are plain functions so FastAPI runs them in its threadpool;
bcrypt and the database calls block.
"""

from fastapi import APIRouter, Depends, status

from authx.api.dependencies import get_current_user_id, get_deadline, get_user_service
from authx.api.errors import to_http_exception
from authx.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    RegisterResponse,
    RegisterUserRequest,
    UserResponse,
)
from authx.domain.deadline import Deadline
from authx.domain.exceptions import AccountError
from authx.domain.ports import AccountService, User

router = APIRouter(prefix="/user", tags=["user"])

_ERROR_RESPONSES = {
    500: {"model": ErrorResponse, "description": "Internal error"},
    503: {"model": ErrorResponse, "description": "Request deadline exceeded"},
}


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid username, email or password"},
        409: {"model": ErrorResponse, "description": "User already exists"},
        422: {"description": "Validation error"},
        **_ERROR_RESPONSES,
    },
    summary="Register a new user",
)
def register(
    request_data: RegisterUserRequest,
    service: AccountService = Depends(get_user_service),
    deadline: Deadline = Depends(get_deadline),
) -> RegisterResponse:
    """
    Register a new user.

    - **email**: Email address (normalized to lowercase)
    - **username**: 3-25 characters from a-z, 0-9 and underscore
    - **password**: At least 6 characters
    """
    try:
        user_id = service.register_user(
            request_data.email, request_data.username, request_data.password, deadline
        )
    except AccountError as err:
        raise to_http_exception(err) from None
    return RegisterResponse(id=user_id)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid login or password"},
        404: {"model": ErrorResponse, "description": "User not found"},
        422: {"description": "Validation error"},
        **_ERROR_RESPONSES,
    },
    summary="Log in and obtain a bearer credential",
)
def login(
    request_data: LoginRequest,
    service: AccountService = Depends(get_user_service),
    deadline: Deadline = Depends(get_deadline),
) -> LoginResponse:
    try:
        token = service.login_user(request_data.email, request_data.password, deadline)
    except AccountError as err:
        raise to_http_exception(err) from None
    return LoginResponse(token=token)


@router.get(
    "/info",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}, **_ERROR_RESPONSES},
    summary="Get the current user's profile",
)
def get_user_info(
    user_id: int = Depends(get_current_user_id),
    service: AccountService = Depends(get_user_service),
    deadline: Deadline = Depends(get_deadline),
) -> UserResponse:
    return _get_profile(service, user_id, deadline)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}, **_ERROR_RESPONSES},
    summary="Get a user's profile by id",
)
def get_user(
    user_id: int,
    service: AccountService = Depends(get_user_service),
    deadline: Deadline = Depends(get_deadline),
) -> UserResponse:
    return _get_profile(service, user_id, deadline)


def _get_profile(service: AccountService, user_id: int, deadline: Deadline) -> UserResponse:
    try:
        user: User = service.get_user_by_id(user_id, deadline)
    except AccountError as err:
        raise to_http_exception(err) from None
    return UserResponse(id=user.id, email=user.email, username=user.username)
