"""
Account domain service - registration, login and profile lookup.

Registration flow
=================

1. Normalize email and username (strip + lowercase)
2. Validate username, email and password
3. Pre-check uniqueness by email, then by username
4. Hash the password with bcrypt
5. Persist via the repository

The pre-check in step 3 only improves the common-case error. Two
concurrent registrations with the same email can both pass it; the
UNIQUE constraints in the users table reject the loser, and the
repository reports that as RecordConflict, which is translated to
Conflict here as well.
"""

import logging
import re
import secrets
from dataclasses import dataclass

import bcrypt

from .deadline import Deadline
from .exceptions import (
    BadRequest,
    Conflict,
    NotFound,
    RecordConflict,
    RecordNotFound,
    StorageError,
    Unknown,
)
from .ports import User, UserRepository

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"[a-z0-9_]+")
EMAIL_PATTERN = re.compile(r"[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}")

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 25
# Password bounds are in UTF-8 bytes
PASSWORD_MIN_LENGTH = 6
# bcrypt only looks at the first 72 bytes of input
PASSWORD_MAX_BYTES = 72


@dataclass
class UserService:
    """
    Domain service for user accounts.

    Orchestrates validation, uniqueness checks, password hashing and
    credential verification on top of a UserRepository.
    """

    repository: UserRepository
    bcrypt_cost: int = 10

    def register_user(
        self, email: str, username: str, password: str, deadline: Deadline | None = None
    ) -> int:
        """
        Register a new user.

        Args:
            email: User's email address (will be normalized)
            username: Desired username (will be normalized)
            password: Plaintext password (will be hashed)
            deadline: Cancellation signal from the caller

        Returns:
            Id assigned to the new user

        Raises:
            BadRequest: Username, email or password fails validation
            Conflict: Email or username already registered
            Unknown: Storage failure
        """
        op = "service.user.register_user"
        deadline = deadline or Deadline()
        deadline.check(op)

        email = self._normalize(email)
        username = self._normalize(username)

        self._validate_username(username)
        self._validate_email(email)
        self._validate_password(password)

        self._ensure_available(op, email, username, deadline)

        password_hash = self._hash_password(password)
        try:
            user_id = self.repository.save(
                User(email=email, username=username, password=password_hash), deadline
            )
        except RecordConflict:
            raise Conflict(op=op) from None
        except StorageError as err:
            raise Unknown(op=op) from err

        logger.info("User registered: id=%s username=%s", user_id, username)
        return user_id

    def login_user(self, email: str, password: str, deadline: Deadline | None = None) -> str:
        """
        Check credentials and issue a bearer credential.

        Unknown emails raise NotFound; a wrong password raises BadRequest
        with the same message as an unusable stored hash.

        Returns:
            Opaque bearer credential
        """
        op = "service.user.login_user"
        deadline = deadline or Deadline()
        deadline.check(op)

        email = self._normalize(email)
        self._validate_email(email)

        try:
            user = self.repository.get_by_email(email, deadline)
        except RecordNotFound:
            raise NotFound(op=op) from None
        except StorageError as err:
            raise Unknown(op=op) from err

        if not self._check_password(password, user.password):
            logger.debug("Failed login for user id=%s", user.id)
            raise BadRequest("invalid login or password", op=op)

        return self._issue_token()

    def get_user_by_id(self, user_id: int, deadline: Deadline | None = None) -> User:
        """Fetch a user profile (no password hash) by id."""
        op = "service.user.get_user_by_id"
        deadline = deadline or Deadline()
        deadline.check(op)

        try:
            return self.repository.get_by_id(user_id, deadline)
        except RecordNotFound:
            raise NotFound(op=op) from None
        except StorageError as err:
            raise Unknown(op=op) from err

    def _ensure_available(self, op: str, email: str, username: str, deadline: Deadline) -> None:
        """Raise Conflict if email or username is already taken."""
        lookups = (
            (self.repository.get_by_email, email),
            (self.repository.get_by_username, username),
        )
        for lookup, value in lookups:
            try:
                lookup(value, deadline)
            except RecordNotFound:
                continue
            except StorageError as err:
                raise Unknown(op=op) from err
            raise Conflict(op=op)

    def _normalize(self, value: str) -> str:
        return value.strip().lower()

    def _validate_username(self, username: str) -> None:
        if len(username) < USERNAME_MIN_LENGTH:
            raise BadRequest("username is too short")
        if len(username) > USERNAME_MAX_LENGTH:
            raise BadRequest("username is too long")
        if not USERNAME_PATTERN.fullmatch(username):
            raise BadRequest("invalid username format")

    def _validate_email(self, email: str) -> None:
        if not EMAIL_PATTERN.fullmatch(email):
            raise BadRequest("invalid email format")

    def _validate_password(self, password: str) -> None:
        size = len(password.encode())
        if size < PASSWORD_MIN_LENGTH:
            raise BadRequest("password is too weak")
        if size > PASSWORD_MAX_BYTES:
            raise BadRequest("password is too long")

    def _hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()

    def _check_password(self, password: str, password_hash: str | None) -> bool:
        """
        Constant-time bcrypt comparison.

        Over-long passwords and missing or malformed hashes count as a
        mismatch rather than an error.
        """
        if not password_hash or len(password.encode()) > PASSWORD_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except ValueError:
            return False

    def _issue_token(self) -> str:
        """
        Generate an opaque bearer credential.

        The credential is random and not stored, so nothing can verify it yet.
        """
        return secrets.token_urlsafe(32)
