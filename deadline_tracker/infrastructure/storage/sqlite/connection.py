"""
aiosqlite connection pool for the deadline store.

Connections are opened once, configured with the pragmas below and handed
out through an asyncio queue. Every write goes through ``transaction()``.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from deadline_tracker.config import get_logger, get_settings
from deadline_tracker.core.exceptions import PersistenceError

logger = get_logger(__name__)

CONNECTION_PRAGMAS: tuple[str, ...] = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """
    Fixed-size pool of aiosqlite connections.

    ``busy_timeout`` (ms) bounds both SQLite lock waits and the wait for an
    idle connection.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        if pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._idle: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._connections: list[aiosqlite.Connection] = []
        self._lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return bool(self._connections)

    @property
    def in_use(self) -> int:
        """Connections currently checked out."""
        return len(self._connections) - self._idle.qsize()

    async def initialize(self) -> None:
        """Open all connections. Idempotent."""
        async with self._lock:
            if self._connections:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                for _ in range(self.pool_size):
                    conn = await self._open()
                    self._connections.append(conn)
                    self._idle.put_nowait(conn)
            except aiosqlite.Error as e:
                await self._close_all()
                logger.error("connection_pool_open_failed", db_path=str(self.db_path), error=str(e))
                raise PersistenceError("connect", str(e)) from e

            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection for reads.

        Raises:
            PersistenceError: No connection became idle within the busy timeout.
        """
        if not self._connections:
            await self.initialize()

        try:
            conn = await asyncio.wait_for(self._idle.get(), timeout=self.busy_timeout / 1000)
        except asyncio.TimeoutError:
            logger.warning("connection_pool_exhausted", pool_size=self.pool_size)
            raise PersistenceError(
                "acquire", "no idle connection within the busy timeout"
            ) from None

        try:
            yield conn
        finally:
            # A connection borrowed before close() is not returned to the new pool
            if conn in self._connections:
                self._idle.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection inside a write transaction.

        BEGIN IMMEDIATE takes the write lock up front, so reads made inside
        the block cannot go stale before the writes that depend on them.
        Commits when the block exits normally, rolls back otherwise.
        """
        async with self.acquire() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

    async def _close_all(self) -> None:
        for conn in self._connections:
            await conn.close()
        self._connections.clear()
        self._idle = asyncio.Queue()

    async def close(self) -> None:
        """Close every connection; the pool reopens on next use."""
        async with self._lock:
            await self._close_all()
            logger.info("connection_pool_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from storage settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await pool.initialize()
        _pool = pool
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
