import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


async def connect(database_path: str) -> aiosqlite.Connection:
    """Open a connection, apply pragmas and pending migrations.

    The returned handle is owned by the caller and passed explicitly to the
    stores that need it; there is no process-wide connection.
    """
    if database_path != ":memory:":
        Path(database_path).parent.mkdir(parents=True, exist_ok=True)

    db = await aiosqlite.connect(database_path)
    db.row_factory = aiosqlite.Row

    if database_path != ":memory:":
        await db.execute("PRAGMA journal_mode=WAL")
    await db.execute("PRAGMA foreign_keys=ON")

    await run_migrations(db)
    logger.info("Database initialized at %s", database_path)
    return db


async def close(db: aiosqlite.Connection) -> None:
    await db.close()
    logger.info("Database connection closed")


async def run_migrations(db: aiosqlite.Connection) -> int:
    """Apply every migration newer than the recorded schema version."""
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
            row = await cursor.fetchone()
            current_version = row[0] if row and row[0] else 0
    except aiosqlite.OperationalError:
        current_version = 0

    for mf in sorted(MIGRATIONS_DIR.glob("*.sql")):
        version = int(mf.stem.split("_")[0])
        if version > current_version:
            logger.info("Applying migration %s", mf.name)
            await db.executescript(mf.read_text())
            await db.commit()
            current_version = version

    logger.info("Migrations complete (at version %d)", current_version)
    return current_version
