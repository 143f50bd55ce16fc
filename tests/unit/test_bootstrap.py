"""
Unit tests for connect_with_retries.

A fake pool factory stands in for psycopg_pool.ConnectionPool so the
retry loop can be driven without a database.
"""

import threading
import time

import psycopg
import pytest

from authx.adapters.repository.bootstrap import DatabaseUnavailable, connect_with_retries
from authx.config.settings import Settings
from authx.domain.deadline import Deadline
from authx.domain.exceptions import OperationCancelled


class FakePool:
    """Pool that fails to open until `succeed_on` attempts have been made."""

    def __init__(self, factory: "FakePoolFactory", **kwargs) -> None:
        self.factory = factory
        self.kwargs = kwargs
        self.closed = False
        self.pinged = False

    def open(self, wait: bool = False, timeout: float = 30.0) -> None:
        self.factory.attempts += 1
        if self.factory.attempts < self.factory.succeed_on:
            raise psycopg.OperationalError(f"connection refused (attempt {self.factory.attempts})")

    def connection(self, timeout: float | None = None):
        pool = self

        class _Conn:
            def __enter__(self):
                return self

            def __exit__(self, *exc):
                return False

            def execute(self, sql: str):
                pool.pinged = True

        return _Conn()

    def close(self) -> None:
        self.closed = True


class FakePoolFactory:
    def __init__(self, succeed_on: int) -> None:
        self.succeed_on = succeed_on
        self.attempts = 0
        self.pools: list[FakePool] = []

    def __call__(self, **kwargs) -> FakePool:
        pool = FakePool(self, **kwargs)
        self.pools.append(pool)
        return pool


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "postgresql://test@localhost/test",
        "db_max_retries": 5,
        "db_retry_interval": 0.0,
        "db_connect_timeout": 30.0,
        "db_ping_timeout": 1.0,
        "pool_min_size": 1,
        "pool_max_size": 3,
    }
    values.update(overrides)
    return Settings(**values)


class TestSuccess:
    def test_first_attempt_success(self) -> None:
        factory = FakePoolFactory(succeed_on=1)

        pool = connect_with_retries(make_settings(), pool_factory=factory)

        assert pool is factory.pools[0]
        assert pool.pinged
        assert not pool.closed
        assert factory.attempts == 1

    def test_succeeds_on_nth_attempt(self) -> None:
        factory = FakePoolFactory(succeed_on=4)

        pool = connect_with_retries(make_settings(db_max_retries=5), pool_factory=factory)

        assert factory.attempts == 4
        assert pool is factory.pools[-1]
        assert all(p.closed for p in factory.pools[:-1])

    def test_succeeds_on_last_allowed_attempt(self) -> None:
        factory = FakePoolFactory(succeed_on=5)

        connect_with_retries(make_settings(db_max_retries=5), pool_factory=factory)

        assert factory.attempts == 5

    def test_pool_built_from_settings(self) -> None:
        factory = FakePoolFactory(succeed_on=1)

        connect_with_retries(make_settings(), pool_factory=factory)

        kwargs = factory.pools[0].kwargs
        assert kwargs["conninfo"] == "postgresql://test@localhost/test"
        assert kwargs["min_size"] == 1
        assert kwargs["max_size"] == 3
        assert kwargs["open"] is False


class TestExhaustion:
    def test_fails_after_exactly_max_retries(self) -> None:
        factory = FakePoolFactory(succeed_on=100)

        with pytest.raises(DatabaseUnavailable) as exc_info:
            connect_with_retries(make_settings(db_max_retries=3), pool_factory=factory)

        assert factory.attempts == 3
        assert exc_info.value.attempts == 3
        assert "after 3 attempt(s)" in str(exc_info.value)

    def test_error_carries_last_cause(self) -> None:
        factory = FakePoolFactory(succeed_on=100)

        with pytest.raises(DatabaseUnavailable) as exc_info:
            connect_with_retries(make_settings(db_max_retries=2), pool_factory=factory)

        assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)
        assert "attempt 2" in str(exc_info.value)

    def test_failed_pools_are_closed(self) -> None:
        factory = FakePoolFactory(succeed_on=100)

        with pytest.raises(DatabaseUnavailable):
            connect_with_retries(make_settings(db_max_retries=3), pool_factory=factory)

        assert all(p.closed for p in factory.pools)

    @pytest.mark.parametrize("max_retries", [0, -1])
    def test_zero_retries_means_single_attempt(self, max_retries: int) -> None:
        factory = FakePoolFactory(succeed_on=100)

        with pytest.raises(DatabaseUnavailable):
            connect_with_retries(make_settings(db_max_retries=max_retries), pool_factory=factory)

        assert factory.attempts == 1

    def test_zero_retries_can_still_succeed(self) -> None:
        factory = FakePoolFactory(succeed_on=1)

        connect_with_retries(make_settings(db_max_retries=0), pool_factory=factory)

        assert factory.attempts == 1


class TestCancellation:
    def test_cancelled_before_start_makes_no_attempt(self) -> None:
        factory = FakePoolFactory(succeed_on=1)
        deadline = Deadline()
        deadline.cancel()

        with pytest.raises(OperationCancelled):
            connect_with_retries(make_settings(), deadline, pool_factory=factory)

        assert factory.attempts == 0

    def test_cancel_during_sleep_is_observed_promptly(self) -> None:
        factory = FakePoolFactory(succeed_on=100)
        deadline = Deadline()
        timer = threading.Timer(0.1, deadline.cancel)
        timer.start()
        start = time.monotonic()

        try:
            with pytest.raises(OperationCancelled) as exc_info:
                connect_with_retries(
                    make_settings(db_retry_interval=30.0), deadline, pool_factory=factory
                )
        finally:
            timer.cancel()

        assert time.monotonic() - start < 5
        assert factory.attempts == 1
        assert isinstance(exc_info.value.__cause__, psycopg.OperationalError)

    def test_connect_timeout_bounds_all_attempts(self) -> None:
        factory = FakePoolFactory(succeed_on=100)
        start = time.monotonic()

        with pytest.raises(OperationCancelled):
            connect_with_retries(
                make_settings(db_max_retries=10, db_retry_interval=5.0, db_connect_timeout=0.2),
                pool_factory=factory,
            )

        assert time.monotonic() - start < 5
        assert factory.attempts == 1
