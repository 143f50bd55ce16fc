"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the User entity and the interfaces (ports) that the
domain requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass
from typing import Protocol

from .deadline import Deadline


@dataclass(frozen=True)
class User:
    """
    Registered user account.

    `password` holds the bcrypt hash, or None when the read deliberately
    omits it (profile lookups). `id` is None until the store assigns one.
    """

    email: str
    username: str
    password: str | None = None
    id: int | None = None


class UserSaver(Protocol):
    """Port interface for persisting new users."""

    def save(self, user: User, deadline: Deadline | None = None) -> int:
        """
        Insert a new user row.

        Args:
            user: User with normalized email/username and hashed password
            deadline: Cancellation signal from the caller

        Returns:
            Store-assigned user id

        Raises:
            RecordConflict: Email or username already exists
            StorageError: Any other persistence failure
        """
        ...


class UserGetter(Protocol):
    """Port interface for user lookups."""

    def get_by_email(self, email: str, deadline: Deadline | None = None) -> User:
        """Fetch user by normalized email, password hash included."""
        ...

    def get_by_username(self, username: str, deadline: Deadline | None = None) -> User:
        """Fetch user by normalized username, password hash included."""
        ...

    def get_by_id(self, user_id: int, deadline: Deadline | None = None) -> User:
        """Fetch user by id, password hash omitted."""
        ...


class UserRepository(UserSaver, UserGetter, Protocol):
    """Full persistence port consumed by the account workflow."""


class AccountService(Protocol):
    """Port interface for the registration/login/profile workflow."""

    def register_user(
        self, email: str, username: str, password: str, deadline: Deadline | None = None
    ) -> int: ...

    def login_user(self, email: str, password: str, deadline: Deadline | None = None) -> str: ...

    def get_user_by_id(self, user_id: int, deadline: Deadline | None = None) -> User: ...
