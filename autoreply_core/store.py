import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from .config import RuntimeConfig
from .errors import StorageError

T = TypeVar("T")

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS opt_out (
        user_id TEXT PRIMARY KEY,
        user_tag TEXT UNIQUE NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cooldowns (
        server_id TEXT NOT NULL,
        channel_id TEXT NOT NULL,
        expires_at INTEGER NOT NULL,
        PRIMARY KEY (server_id, channel_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS channel_counters (
        channel_id TEXT PRIMARY KEY,
        chance INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reply_channels (
        server_id TEXT NOT NULL,
        channel_id TEXT NOT NULL,
        PRIMARY KEY (server_id, channel_id)
    )
    """,
)


class CounterStore:
    """
    Durable state behind the engagement pipeline: opt-out membership, cooldown
    expiries and per-channel chance counters, plus the reply-channel policy table.

    One sqlite connection is owned per instance and every statement runs in a worker
    thread while holding `_lock`, so concurrent message tasks are serialized and a
    read-modify-write on a counter can never lose an update.
    """

    def __init__(self, path: Path, timeout: float = 5.0):
        self.path = Path(path)
        self.timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()
        self.logger = logging.getLogger("autoreply.store")

    @classmethod
    def from_config(cls, config: RuntimeConfig) -> "CounterStore":
        return cls(config.db_path, timeout=config.storage_timeout_seconds)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> "CounterStore":
        async with self._lock:
            if self._conn is not None:
                return self
            self._conn = await asyncio.to_thread(self._connect)
        self.logger.info("Counter store opened at %s", self.path)
        return self

    async def close(self) -> None:
        async with self._lock:
            conn, self._conn = self._conn, None
            if conn is not None:
                await asyncio.to_thread(conn.close)

    async def __aenter__(self) -> "CounterStore":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _connect(self) -> sqlite3.Connection:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path, timeout=self.timeout, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            with conn:
                for statement in SCHEMA:
                    conn.execute(statement)
            return conn
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"could not open counter store at {self.path}: {exc}") from exc

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        async with self._lock:
            conn = self._conn
            if conn is None:
                raise StorageError("counter store is not open")
            try:
                return await asyncio.to_thread(fn, conn)
            except sqlite3.Error as exc:
                raise StorageError(str(exc)) from exc

    # ---------------------------------------------
    # Channel counters
    # ---------------------------------------------
    async def get(self, channel_id: int | str) -> Optional[int]:
        def _read(conn: sqlite3.Connection) -> Optional[int]:
            row = conn.execute(
                "SELECT chance FROM channel_counters WHERE channel_id = ?", (str(channel_id),)
            ).fetchone()
            return int(row[0]) if row else None

        return await self._run(_read)

    async def increment(self, channel_id: int | str, delta: int = 1) -> int:
        def _increment(conn: sqlite3.Connection) -> int:
            # The connection context manager commits on success and rolls back on error.
            with conn:
                conn.execute(
                    """
                    INSERT INTO channel_counters (channel_id, chance) VALUES (?, ?)
                    ON CONFLICT(channel_id) DO UPDATE SET chance = chance + excluded.chance
                    """,
                    (str(channel_id), int(delta)),
                )
                row = conn.execute(
                    "SELECT chance FROM channel_counters WHERE channel_id = ?", (str(channel_id),)
                ).fetchone()
            return int(row[0])

        return await self._run(_increment)

    async def set_counter(self, channel_id: int | str, value: int) -> None:
        def _write(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(
                    """
                    INSERT INTO channel_counters (channel_id, chance) VALUES (?, ?)
                    ON CONFLICT(channel_id) DO UPDATE SET chance = excluded.chance
                    """,
                    (str(channel_id), int(value)),
                )

        await self._run(_write)

    # ---------------------------------------------
    # Cooldowns
    # ---------------------------------------------
    async def get_cooldown(self, server_id: int | str, channel_id: int | str) -> Optional[int]:
        def _read(conn: sqlite3.Connection) -> Optional[int]:
            row = conn.execute(
                "SELECT expires_at FROM cooldowns WHERE server_id = ? AND channel_id = ?",
                (str(server_id), str(channel_id)),
            ).fetchone()
            return int(row[0]) if row else None

        return await self._run(_read)

    async def set_cooldown(self, server_id: int | str, channel_id: int | str, expires_at_ms: int) -> None:
        def _write(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(
                    """
                    INSERT INTO cooldowns (server_id, channel_id, expires_at) VALUES (?, ?, ?)
                    ON CONFLICT(server_id, channel_id) DO UPDATE SET expires_at = excluded.expires_at
                    """,
                    (str(server_id), str(channel_id), int(expires_at_ms)),
                )

        await self._run(_write)

    async def clear_cooldown(self, server_id: int | str, channel_id: int | str) -> bool:
        def _delete(conn: sqlite3.Connection) -> bool:
            with conn:
                cur = conn.execute(
                    "DELETE FROM cooldowns WHERE server_id = ? AND channel_id = ?",
                    (str(server_id), str(channel_id)),
                )
            return cur.rowcount > 0

        return await self._run(_delete)

    # ---------------------------------------------
    # Opt-out
    # ---------------------------------------------
    async def is_opted_out(self, user_tag: str, user_id: int | str | None = None) -> bool:
        def _read(conn: sqlite3.Connection) -> bool:
            if user_id is not None:
                row = conn.execute(
                    "SELECT 1 FROM opt_out WHERE user_tag = ? OR user_id = ? LIMIT 1",
                    (user_tag, str(user_id)),
                ).fetchone()
            else:
                row = conn.execute("SELECT 1 FROM opt_out WHERE user_tag = ? LIMIT 1", (user_tag,)).fetchone()
            return row is not None

        return await self._run(_read)

    async def add_opt_out(self, user_id: int | str, user_tag: str) -> None:
        def _write(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute("DELETE FROM opt_out WHERE user_tag = ? AND user_id != ?", (user_tag, str(user_id)))
                conn.execute(
                    """
                    INSERT INTO opt_out (user_id, user_tag) VALUES (?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET user_tag = excluded.user_tag
                    """,
                    (str(user_id), user_tag),
                )

        await self._run(_write)

    async def remove_opt_out(self, user_tag: str) -> bool:
        def _delete(conn: sqlite3.Connection) -> bool:
            with conn:
                cur = conn.execute("DELETE FROM opt_out WHERE user_tag = ?", (user_tag,))
            return cur.rowcount > 0

        return await self._run(_delete)

    async def list_opt_outs(self) -> List[str]:
        def _read(conn: sqlite3.Connection) -> List[str]:
            rows = conn.execute("SELECT user_tag FROM opt_out ORDER BY user_tag").fetchall()
            return [row[0] for row in rows]

        return await self._run(_read)

    # ---------------------------------------------
    # Reply channel policy
    # ---------------------------------------------
    async def add_reply_channel(self, server_id: int | str, channel_id: int | str) -> bool:
        """Returns True when the channel was not already enabled."""

        def _write(conn: sqlite3.Connection) -> bool:
            with conn:
                cur = conn.execute(
                    "INSERT OR IGNORE INTO reply_channels (server_id, channel_id) VALUES (?, ?)",
                    (str(server_id), str(channel_id)),
                )
                return cur.rowcount == 1

        await self._run(_write)

    async def remove_reply_channel(self, server_id: int | str, channel_id: int | str) -> bool:
        def _delete(conn: sqlite3.Connection) -> bool:
            with conn:
                cur = conn.execute(
                    "DELETE FROM reply_channels WHERE server_id = ? AND channel_id = ?",
                    (str(server_id), str(channel_id)),
                )
            return cur.rowcount > 0

        return await self._run(_delete)

    async def reply_channels(self, server_id: int | str) -> List[Tuple[str, int]]:
        """Reply channels of a server with their current chance (0 when no counter row)."""

        def _read(conn: sqlite3.Connection) -> List[Tuple[str, int]]:
            rows = conn.execute(
                """
                SELECT r.channel_id, COALESCE(c.chance, 0)
                FROM reply_channels r
                LEFT JOIN channel_counters c ON c.channel_id = r.channel_id
                WHERE r.server_id = ?
                ORDER BY r.channel_id
                """,
                (str(server_id),),
            ).fetchall()
            return [(str(channel_id), int(chance)) for channel_id, chance in rows]

        return await self._run(_read)
