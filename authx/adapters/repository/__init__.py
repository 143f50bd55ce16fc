"""Repository adapters - Database implementations."""

from .bootstrap import DatabaseUnavailable, connect_with_retries
from .migrator import MigrationError, Migrator, run_migrations
from .postgres import PostgresUserRepository

__all__ = [
    "DatabaseUnavailable",
    "MigrationError",
    "Migrator",
    "PostgresUserRepository",
    "connect_with_retries",
    "run_migrations",
]
