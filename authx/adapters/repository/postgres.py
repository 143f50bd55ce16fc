"""
PostgreSQL repository adapter - Implements UserRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Error translation happens here and nowhere else:
- UniqueViolation (SQLSTATE 23505) -> RecordConflict
- no row for a lookup              -> RecordNotFound
- QueryCanceled, or a pool checkout timeout after the caller's
  deadline                         -> OperationCancelled
- any other psycopg.Error          -> StorageError

A deadline bounds both the pool checkout and the statement itself: the
time left is installed as a transaction-local statement_timeout, so the
server cancels a query still running when the deadline passes.
"""

import logging

import psycopg
from psycopg.errors import QueryCanceled, UniqueViolation
from psycopg_pool import ConnectionPool

from authx.domain.deadline import Deadline
from authx.domain.exceptions import (
    OperationCancelled,
    RecordConflict,
    RecordNotFound,
    StorageError,
)
from authx.domain.ports import User

logger = logging.getLogger(__name__)

_SELECT_WITH_PASSWORD = "SELECT id, email, username, password FROM users"
# set_config(..., true) scopes the value to the current transaction
_SET_STATEMENT_TIMEOUT = "SELECT set_config('statement_timeout', %s, true)"


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security. Holds no state
    besides the shared pool, so one instance can serve concurrent requests.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def save(self, user: User, deadline: Deadline | None = None) -> int:
        """
        Insert a new user and return its id.

        The UNIQUE constraints on email and username are the authority on
        uniqueness; a violation surfaces as RecordConflict.

        Raises:
            RecordConflict: Email or username already exists
            OperationCancelled: Deadline passed before or during the insert
            StorageError: Any other database failure
        """
        op = "repository.postgres.user.save"
        deadline = deadline or Deadline()
        sql = """
            INSERT INTO users (email, username, password)
            VALUES (%s, %s, %s)
            RETURNING id
        """

        deadline.check(op)
        try:
            with self._pool.connection(timeout=deadline.remaining()) as conn, conn.cursor() as cursor:
                self._bound_statement(op, cursor, deadline)
                cursor.execute(sql, (user.email, user.username, user.password))
                row = cursor.fetchone()
                conn.commit()
        except UniqueViolation:
            raise RecordConflict(op) from None
        except psycopg.Error as err:
            raise self._translate(op, err, deadline) from err

        return row[0]

    def get_by_email(self, email: str, deadline: Deadline | None = None) -> User:
        """Fetch user by email, including the password hash."""
        return self._fetch_one(
            "repository.postgres.user.get_by_email",
            f"{_SELECT_WITH_PASSWORD} WHERE email = %s",
            email,
            deadline,
        )

    def get_by_username(self, username: str, deadline: Deadline | None = None) -> User:
        """Fetch user by username, including the password hash."""
        return self._fetch_one(
            "repository.postgres.user.get_by_username",
            f"{_SELECT_WITH_PASSWORD} WHERE username = %s",
            username,
            deadline,
        )

    def get_by_id(self, user_id: int, deadline: Deadline | None = None) -> User:
        """
        Fetch user by id for profile display.

        The password column is never selected here.
        """
        return self._fetch_one(
            "repository.postgres.user.get_by_id",
            "SELECT id, email, username FROM users WHERE id = %s",
            user_id,
            deadline,
        )

    def _fetch_one(self, op: str, sql: str, param: object, deadline: Deadline | None) -> User:
        """Run a single-row lookup and map the row to a User."""
        deadline = deadline or Deadline()
        deadline.check(op)
        try:
            with self._pool.connection(timeout=deadline.remaining()) as conn, conn.cursor() as cursor:
                self._bound_statement(op, cursor, deadline)
                cursor.execute(sql, (param,))
                row = cursor.fetchone()
        except psycopg.Error as err:
            raise self._translate(op, err, deadline) from err

        if row is None:
            raise RecordNotFound(op)

        return User(
            id=row[0],
            email=row[1],
            username=row[2],
            password=row[3] if len(row) > 3 else None,
        )

    def _bound_statement(self, op: str, cursor: psycopg.Cursor, deadline: Deadline) -> None:
        """Limit the next statement to the time left on the deadline."""
        # Checkout may have used up the remaining time
        deadline.check(op)
        remaining = deadline.remaining()
        if remaining is None:
            return
        cursor.execute(_SET_STATEMENT_TIMEOUT, (str(max(int(remaining * 1000), 1)),))

    def _translate(
        self, op: str, err: psycopg.Error, deadline: Deadline
    ) -> StorageError | OperationCancelled:
        """Map a psycopg error to the domain error to raise."""
        if isinstance(err, QueryCanceled):
            return OperationCancelled("deadline exceeded during query", op=op)
        if deadline.expired:
            return OperationCancelled("deadline exceeded waiting for database", op=op)
        logger.error("%s failed: %s", op, err)
        return StorageError(op, str(err))
