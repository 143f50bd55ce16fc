"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Request
from psycopg_pool import ConnectionPool

from authx.adapters.repository.postgres import PostgresUserRepository
from authx.config.settings import get_settings
from authx.domain.accounts import UserService
from authx.domain.deadline import Deadline
from authx.domain.ports import AccountService

# TODO: derive the current user from a verified bearer credential once login
# issues verifiable tokens; until then the profile endpoint serves this id.
STUB_CURRENT_USER_ID = 1


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresUserRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresUserRepository(pool)


def get_user_service(request: Request) -> AccountService:
    """
    Create account service with injected dependencies.

    Wires the repository and the configured bcrypt cost into the domain service.
    """
    repository = get_repository(request)
    return UserService(repository=repository, bcrypt_cost=get_settings().bcrypt_cost)


def get_deadline() -> Deadline:
    """Per-request deadline bounded by settings.request_timeout."""
    return Deadline(get_settings().request_timeout)


def get_current_user_id() -> int:
    """Resolve the id of the user making the request."""
    return STUB_CURRENT_USER_ID
