"""
Versioned SQL migrations for the deadline database.

Files named ``vNNN_name.sql`` are applied in version order, each inside its
own transaction, and recorded in ``schema_migrations`` with a checksum of
their text. Applied migrations are skipped; an applied file whose text has
changed since is reported but not re-run.
"""

import asyncio
import hashlib
import re
import time
from dataclasses import dataclass, field
from pathlib import Path

import aiosqlite

from deadline_tracker.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d+)_(.+)\.sql")

_TRACKING_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    execution_time_ms INTEGER,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
)
"""


@dataclass(frozen=True)
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME.fullmatch(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


@dataclass
class MigrationStatus:
    """Schema state of a database file relative to the migrations on disk."""

    exists: bool
    current_version: str | None = None
    applied: list[str] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return self.exists and not self.pending


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied versions mapped to the checksum recorded at the time."""
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        # Fresh database
        return {}
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files in ``directory``, lowest version first."""
    migrations = []
    for path in directory.glob("v*.sql"):
        try:
            migrations.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return sorted(migrations, key=lambda m: int(m.version))


async def apply_migration(
    conn: aiosqlite.Connection,
    migration: MigrationInfo,
) -> MigrationResult:
    """Run one migration script and record it; roll back on failure."""
    logger.info("applying_migration", version=migration.version, name=migration.name)
    start = time.perf_counter()
    sql = migration.path.read_text(encoding="utf-8")

    try:
        await conn.executescript(f"BEGIN;\n{sql}\n;\nCOMMIT;")
        await conn.execute(
            """
            INSERT OR REPLACE INTO schema_migrations (version, name, checksum, execution_time_ms)
            VALUES (?, ?, ?, ?)
            """,
            (migration.version, migration.name, migration.checksum, _elapsed_ms(start)),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error(
            "migration_failed",
            version=migration.version,
            name=migration.name,
            error=str(e),
        )
        return MigrationResult(
            version=migration.version,
            name=migration.name,
            success=False,
            execution_time_ms=_elapsed_ms(start),
            error=str(e),
        )

    result = MigrationResult(
        version=migration.version,
        name=migration.name,
        success=True,
        execution_time_ms=_elapsed_ms(start),
    )
    logger.info(
        "migration_applied",
        version=result.version,
        name=result.name,
        execution_time_ms=result.execution_time_ms,
    )
    return result


async def initialize_database(
    db_path: Path | None = None,
    directory: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Apply pending migrations, stopping at the first failure.

    Args:
        db_path: Database file (default from settings); created if missing.
        directory: Where migration files live.

    Returns:
        Results for the migrations attempted, in order. Empty when the
        database was already current.
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    results: list[MigrationResult] = []
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(_TRACKING_TABLE)
        await conn.commit()

        applied = await get_applied_migrations(conn)
        for migration in discover_migrations(directory):
            if migration.version in applied:
                if applied[migration.version] != migration.checksum:
                    logger.warning("migration_checksum_changed", version=migration.version)
                continue

            result = await apply_migration(conn, migration)
            results.append(result)
            if not result.success:
                break

    return results


# Name used by the application lifespan
run_migrations = initialize_database


async def get_migration_status(
    db_path: Path | None = None,
    directory: Path = MIGRATIONS_DIR,
) -> MigrationStatus:
    """Compare a database with the migrations on disk without changing it."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations(directory)

    if not db_path.exists():
        return MigrationStatus(exists=False, pending=[m.version for m in discovered])

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)

    return MigrationStatus(
        exists=True,
        current_version=max(applied) if applied else None,
        applied=sorted(applied),
        pending=[m.version for m in discovered if m.version not in applied],
        changed=[
            m.version
            for m in discovered
            if m.version in applied and applied[m.version] != m.checksum
        ],
    )


def main() -> None:
    """CLI entry point: ``deadline-tracker-migrate [--db-path PATH] [--status]``."""
    import argparse

    parser = argparse.ArgumentParser(description="Deadline tracker database migrator")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    parser.add_argument("--status", action="store_true", help="Show migration status and exit")
    args = parser.parse_args()

    async def run() -> int:
        if args.status:
            status = await get_migration_status(args.db_path)
            print(f"Database exists: {status.exists}")
            print(f"Current version: {status.current_version or 'N/A'}")
            print(f"Applied: {', '.join(status.applied) or '-'}")
            print(f"Pending: {', '.join(status.pending) or '-'}")
            if status.changed:
                print(f"Edited since applied: {', '.join(status.changed)}")
            return 0

        results = await initialize_database(args.db_path)
        if not results:
            print("Database is up to date")
        for result in results:
            state = "OK" if result.success else f"FAILED ({result.error})"
            print(f"v{result.version}_{result.name}: {state} [{result.execution_time_ms}ms]")
        return 0 if all(r.success for r in results) else 1

    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
