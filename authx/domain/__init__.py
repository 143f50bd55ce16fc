"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account workflow (registration, login, profile
lookup) and the port interfaces it needs from infrastructure, keeping the
storage engine and the HTTP framework out of the business rules.
"""

from .accounts import UserService
from .deadline import Deadline
from .exceptions import (
    AccountError,
    BadRequest,
    Conflict,
    NotFound,
    OperationCancelled,
    RecordConflict,
    RecordNotFound,
    StorageError,
    Unknown,
)
from .ports import AccountService, User, UserGetter, UserRepository, UserSaver

__all__ = [
    "AccountError",
    "AccountService",
    "BadRequest",
    "Conflict",
    "Deadline",
    "NotFound",
    "OperationCancelled",
    "RecordConflict",
    "RecordNotFound",
    "StorageError",
    "Unknown",
    "User",
    "UserGetter",
    "UserRepository",
    "UserSaver",
    "UserService",
]
