import logging
import time

from ._schema import SCHEMA_SQL, SCHEMA_VERSION

logger = logging.getLogger("storage")


async def run_migrations(db, logger_override=None):
    log = logger_override or logger
    current_version = 0
    async with db.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    ) as cursor:
        has_version_table = await cursor.fetchone() is not None
    if has_version_table:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
            row = await cursor.fetchone()
            if row and row[0] is not None:
                current_version = row[0]

    if current_version >= SCHEMA_VERSION:
        log.debug("Database schema up to date (v%d)", current_version)
        return

    log.info("Migrating database from v%d to v%d", current_version, SCHEMA_VERSION)
    await db.executescript(SCHEMA_SQL)

    if 0 < current_version < 2:
        # v2 added the ledger audit trail and payout-destination toggles
        for table in ("banks", "admin_wallets"):
            async with db.execute(f"PRAGMA table_info({table})") as cursor:
                columns = {row[1] async for row in cursor}
            if "is_active" not in columns:
                await db.execute(
                    f"ALTER TABLE {table} ADD COLUMN is_active INTEGER NOT NULL DEFAULT 1"
                )

    await db.execute(
        "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
        (SCHEMA_VERSION, time.time()),
    )
    await db.commit()
    log.info("Migration complete (v%d)", SCHEMA_VERSION)
