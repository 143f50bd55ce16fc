"""
Versioned SQL migrations.

Files are named ``<version>_<name>.up.sql`` / ``<version>_<name>.down.sql``.
The current schema version lives in a one-row table (``schema_migrations``
by default) together with a dirty flag:

- up applies every migration newer than the current version, in order
- down rolls back the current version only
- force sets the version without running anything and clears the flag

Each file runs in its own transaction together with the version update.
A failing file rolls back and leaves the version marked dirty at the
failing migration; up and down refuse to run until it is forced.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent.parent / "migrations"
DEFAULT_TABLE = "schema_migrations"

_FILE_PATTERN = re.compile(r"(\d+)_(\w+)\.(up|down)\.sql")
_TABLE_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class MigrationError(RuntimeError):
    """A migration could not be applied or the schema state forbids it."""


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    up: Path | None = None
    down: Path | None = None


def load_migrations(directory: Path) -> list[Migration]:
    """Collect migration files from a directory, ordered by version."""
    if not directory.is_dir():
        raise MigrationError(f"Migrations directory not found: {directory}")

    found: dict[int, dict] = {}
    for path in sorted(directory.glob("*.sql")):
        match = _FILE_PATTERN.fullmatch(path.name)
        if match is None:
            logger.warning("Skipping unrecognized migration file: %s", path.name)
            continue
        version, name, direction = int(match[1]), match[2], match[3]
        entry = found.setdefault(version, {"version": version, "name": name})
        if direction in entry:
            raise MigrationError(f"Duplicate {direction} migration for version {version}")
        entry[direction] = path

    return [Migration(**found[version]) for version in sorted(found)]


class Migrator:
    """Applies migrations from a directory and tracks the schema version."""

    def __init__(
        self,
        pool: ConnectionPool,
        directory: Path = MIGRATIONS_DIR,
        table: str = DEFAULT_TABLE,
    ) -> None:
        if not _TABLE_PATTERN.fullmatch(table):
            raise ValueError(f"Invalid migrations table name: {table!r}")
        self._pool = pool
        self._table = table
        self.migrations = load_migrations(Path(directory))

    def version(self) -> tuple[int | None, bool]:
        """Return (current version or None, dirty)."""
        with self._pool.connection() as conn:
            self._ensure_table(conn)
            row = conn.execute(f"SELECT version, dirty FROM {self._table} LIMIT 1").fetchone()
        if row is None:
            return None, False
        return row[0], row[1]

    def up(self) -> list[int]:
        """Apply pending migrations; return the versions applied."""
        current = self._clean_version()
        pending = [m for m in self.migrations if current is None or m.version > current]

        if not pending:
            logger.info("No migrations to apply")
            return []

        logger.info(f"Running {len(pending)} migration(s) up")
        for migration in pending:
            if migration.up is None:
                raise MigrationError(f"Migration {migration.version} has no up file")
            self._run(migration.up, failing_version=migration.version, new_version=migration.version)
        return [m.version for m in pending]

    def down(self) -> int | None:
        """Roll back the current migration; return its version, or None if nothing was applied."""
        current = self._clean_version()
        if current is None:
            logger.info("No migrations to roll back")
            return None

        migration = next((m for m in self.migrations if m.version == current), None)
        if migration is None or migration.down is None:
            raise MigrationError(f"No down migration for version {current}")

        previous = max((m.version for m in self.migrations if m.version < current), default=None)
        self._run(migration.down, failing_version=current, new_version=previous)
        return current

    def force(self, version: int | None) -> None:
        """Record `version` as current and clean without running any SQL."""
        with self._pool.connection() as conn:
            self._ensure_table(conn)
            self._write_version(conn, version, dirty=False)
        logger.info("Forced migration version %s", version)

    def _clean_version(self) -> int | None:
        current, dirty = self.version()
        if dirty:
            raise MigrationError(
                f"Database is dirty at version {current}; fix it and run force {current}"
            )
        return current

    def _run(self, path: Path, failing_version: int, new_version: int | None) -> None:
        logger.info(f"Executing migration: {path.name}")
        try:
            sql_content = path.read_text()
            with self._pool.connection() as conn:
                conn.execute(sql_content)
                self._write_version(conn, new_version, dirty=False)
                # committed when the pool takes the connection back
        except (OSError, psycopg.Error) as e:
            logger.error(f"Migration failed: {path.name} - {e}")
            with self._pool.connection() as conn:
                self._write_version(conn, failing_version, dirty=True)
            raise MigrationError(f"Database migration failed: {path.name}") from e

        logger.info(f"Migration complete: {path.name}")

    def _ensure_table(self, conn: psycopg.Connection) -> None:
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {self._table} "
            "(version BIGINT NOT NULL PRIMARY KEY, dirty BOOLEAN NOT NULL)"
        )

    def _write_version(self, conn: psycopg.Connection, version: int | None, dirty: bool) -> None:
        conn.execute(f"DELETE FROM {self._table}")
        if version is not None:
            conn.execute(
                f"INSERT INTO {self._table} (version, dirty) VALUES (%s, %s)", (version, dirty)
            )


def run_migrations(
    pool: ConnectionPool,
    direction: str = "up",
    directory: Path = MIGRATIONS_DIR,
    table: str = DEFAULT_TABLE,
) -> None:
    """
    Apply ("up") or roll back one ("down") migration.

    Args:
        pool: psycopg3 ConnectionPool instance
        direction: "up" or "down"
        directory: Folder holding the SQL files
        table: Name of the version table
    """
    if direction not in ("up", "down"):
        raise ValueError(f"Unknown migration direction: {direction}")

    migrator = Migrator(pool, directory, table)
    if direction == "up":
        migrator.up()
    else:
        migrator.down()
