import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import List, Optional

import aiosqlite

from hashyield.errors import ConflictError, StorageError, ValidationError

logger = logging.getLogger("storage")

# Lock held by the current task's open transaction(), if any
_held_lock: ContextVar[Optional[asyncio.Lock]] = ContextVar("held_lock", default=None)


def translate_integrity_error(exc: sqlite3.IntegrityError) -> Exception:
    """Map a constraint violation to the application error it stands for."""
    text = str(exc)
    if "UNIQUE constraint failed" in text:
        return ConflictError("Resource already exists", details=text)
    if "FOREIGN KEY constraint failed" in text:
        return ValidationError("Invalid reference", details=text)
    if "CHECK constraint failed" in text:
        return ValidationError("Value out of range", details=text)
    return ValidationError("Constraint violation", details=text)


class BaseRepo:
    """Shared connection handling for the table repositories.

    All repositories built by one StorageManager share a single aiosqlite
    connection and a single lock. Writes, and any read-modify-write
    sequence run through transaction(), hold the lock for their duration so
    that one coroutine's commit never lands in the middle of another's
    transaction. Reads from outside a transaction wait for the lock too, so
    they never see another coroutine's uncommitted rows.
    """

    def __init__(self, db: aiosqlite.Connection, lock: Optional[asyncio.Lock] = None):
        self._db = db
        self._lock = lock or asyncio.Lock()

    @asynccontextmanager
    async def transaction(self):
        """BEGIN IMMEDIATE ... COMMIT, rolled back on any exception."""
        async with self._lock:
            await self._db.execute("BEGIN IMMEDIATE")
            token = _held_lock.set(self._lock)
            try:
                yield self._db
            except sqlite3.IntegrityError as exc:
                await self._db.rollback()
                raise translate_integrity_error(exc) from exc
            except sqlite3.Error as exc:
                await self._db.rollback()
                logger.exception("Transaction failed")
                raise StorageError("Database operation failed") from exc
            except BaseException:
                await self._db.rollback()
                raise
            else:
                await self._db.commit()
            finally:
                _held_lock.reset(token)

    @asynccontextmanager
    async def _reading(self):
        # inside transaction() the lock is already ours; elsewhere wait for it
        if _held_lock.get() is self._lock:
            yield
        else:
            async with self._lock:
                yield

    async def _write(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        async with self._lock:
            try:
                cursor = await self._db.execute(sql, params)
                await self._db.commit()
            except sqlite3.IntegrityError as exc:
                await self._db.rollback()
                raise translate_integrity_error(exc) from exc
            except sqlite3.Error as exc:
                await self._db.rollback()
                logger.exception("Write failed: %s", sql.split(" ", 3)[:3])
                raise StorageError("Database operation failed") from exc
        return cursor

    async def _fetchone(self, sql: str, params: tuple = ()) -> Optional[tuple]:
        async with self._reading():
            try:
                async with self._db.execute(sql, params) as cursor:
                    return await cursor.fetchone()
            except sqlite3.Error as exc:
                logger.exception("Query failed")
                raise StorageError("Database operation failed") from exc

    async def _fetchall(self, sql: str, params: tuple = ()) -> List[tuple]:
        async with self._reading():
            try:
                async with self._db.execute(sql, params) as cursor:
                    return list(await cursor.fetchall())
            except sqlite3.Error as exc:
                logger.exception("Query failed")
                raise StorageError("Database operation failed") from exc

    async def _count(self, sql: str, params: tuple = ()) -> int:
        row = await self._fetchone(sql, params)
        return row[0] if row else 0
