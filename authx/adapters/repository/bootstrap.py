"""
PostgreSQL connection bootstrap - open a live pool, retrying until a deadline.

The database is often still starting when the service boots (docker-compose,
Kubernetes), so the first connection is retried with a fixed interval. Every
attempt builds a fresh pool, waits for its minimum connections and pings
with SELECT 1. A failed attempt closes its pool before sleeping.
"""

import logging
from collections.abc import Callable

import psycopg
from psycopg_pool import ConnectionPool

from authx.config.settings import Settings
from authx.domain.deadline import Deadline
from authx.domain.exceptions import OperationCancelled

logger = logging.getLogger(__name__)


class DatabaseUnavailable(RuntimeError):
    """Every connection attempt failed."""

    def __init__(self, attempts: int, cause: BaseException | None) -> None:
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"could not establish connection to PostgreSQL after {attempts} attempt(s): {cause}"
        )


def connect_with_retries(
    settings: Settings,
    deadline: Deadline | None = None,
    *,
    pool_factory: Callable[..., ConnectionPool] = ConnectionPool,
) -> ConnectionPool:
    """
    Open a connection pool and verify it is alive, retrying on failure.

    Args:
        settings: Connection string, pool sizing and retry settings
        deadline: Caller's cancellation signal; narrowed by db_connect_timeout
        pool_factory: ConnectionPool-compatible constructor

    Returns:
        Open, pinged ConnectionPool

    Raises:
        OperationCancelled: Deadline cancelled or expired before success
        DatabaseUnavailable: All attempts failed
    """
    op = "postgres.connect_with_retries"
    deadline = Deadline(settings.db_connect_timeout, parent=deadline)
    attempts = max(settings.db_max_retries, 1)
    last_error: BaseException | None = None

    for attempt in range(1, attempts + 1):
        if deadline.expired:
            raise OperationCancelled(
                "cancelled or timed out before successful connection", op=op
            ) from last_error

        logger.debug("Attempting to connect to PostgreSQL (attempt %d/%d)", attempt, attempts)

        pool = pool_factory(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=False,
        )
        try:
            timeout = deadline.clamp(settings.db_ping_timeout)
            pool.open(wait=True, timeout=timeout)
            with pool.connection(timeout=timeout) as conn:
                conn.execute("SELECT 1")
        except psycopg.Error as err:
            last_error = err
            logger.warning(
                "Failed to connect to PostgreSQL (attempt %d/%d): %s", attempt, attempts, err
            )
            _close_quietly(pool)
        else:
            logger.info("Successfully connected to PostgreSQL")
            return pool

        if attempt < attempts:
            deadline.sleep(settings.db_retry_interval)

    raise DatabaseUnavailable(attempts, last_error) from last_error


def _close_quietly(pool: ConnectionPool) -> None:
    """Close a pool that failed to come up, logging close failures."""
    try:
        pool.close()
    except psycopg.Error as err:
        logger.error("Failed to close dangling pool during retry: %s", err)
