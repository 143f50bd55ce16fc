"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory UserRepository double and a fast UserService (bcrypt cost 4)
- A real PostgreSQL pool, repository and table cleanup for integration
  and adversarial tests; these skip when the database is unreachable
"""

import threading
from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from authx.adapters.repository.bootstrap import DatabaseUnavailable, connect_with_retries
from authx.adapters.repository.migrator import run_migrations
from authx.adapters.repository.postgres import PostgresUserRepository
from authx.config.settings import get_settings
from authx.domain.accounts import UserService
from authx.domain.deadline import Deadline
from authx.domain.exceptions import OperationCancelled, RecordConflict, RecordNotFound
from authx.domain.ports import User

# Minimum bcrypt cost; keeps hashing in tests fast.
TEST_BCRYPT_COST = 4


class InMemoryUserRepository:
    """
    Implements UserRepository protocol with a dict.

    Mirrors the PostgreSQL adapter: unique email and username,
    sequential ids, no password on get_by_id.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[int, User] = {}
        self._next_id = 1

    def save(self, user: User, deadline: Deadline | None = None) -> int:
        with self._lock:
            for row in self._rows.values():
                if row.email == user.email or row.username == user.username:
                    raise RecordConflict("memory.save")
            user_id = self._next_id
            self._next_id += 1
            self._rows[user_id] = User(
                id=user_id, email=user.email, username=user.username, password=user.password
            )
            return user_id

    def get_by_email(self, email: str, deadline: Deadline | None = None) -> User:
        return self._find("memory.get_by_email", lambda row: row.email == email)

    def get_by_username(self, username: str, deadline: Deadline | None = None) -> User:
        return self._find("memory.get_by_username", lambda row: row.username == username)

    def get_by_id(self, user_id: int, deadline: Deadline | None = None) -> User:
        row = self._find("memory.get_by_id", lambda row: row.id == user_id)
        return User(id=row.id, email=row.email, username=row.username)

    def _find(self, op, predicate) -> User:
        with self._lock:
            for row in self._rows.values():
                if predicate(row):
                    return row
        raise RecordNotFound(op)


@pytest.fixture
def memory_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def service(memory_repository: InMemoryUserRepository) -> UserService:
    return UserService(repository=memory_repository, bcrypt_cost=TEST_BCRYPT_COST)


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for database tests, or skip without a database."""
    settings = get_settings().model_copy(
        update={
            "db_max_retries": 1,
            "db_connect_timeout": 5.0,
            "db_ping_timeout": 3.0,
            "pool_min_size": 1,
            "pool_max_size": 10,
        }
    )
    try:
        pool = connect_with_retries(settings)
    except (DatabaseUnavailable, OperationCancelled) as err:
        pytest.skip(f"PostgreSQL not available: {err}")

    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def repository(pool: ConnectionPool) -> PostgresUserRepository:
    """Create repository instance for each test."""
    return PostgresUserRepository(pool)


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty the users table before each test."""
    with pool.connection() as conn:
        conn.execute("TRUNCATE users RESTART IDENTITY")
    yield
