"""SQLite database connection manager with schema setup."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from momboss_agent.log import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS conversations (
    id               TEXT PRIMARY KEY,
    whatsapp_number  TEXT NOT NULL UNIQUE,
    vendor_name      TEXT,
    wp_user_id       INTEGER,
    wp_store_id      INTEGER,
    status           TEXT NOT NULL DEFAULT 'ACTIVE' CHECK(status IN ('ACTIVE','ARCHIVED')),
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now')),
    last_message_at  TEXT
);

CREATE TABLE IF NOT EXISTS messages (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id  TEXT    NOT NULL REFERENCES conversations(id),
    direction        TEXT    NOT NULL CHECK(direction IN ('INBOUND','OUTBOUND')),
    sender_type      TEXT    NOT NULL CHECK(sender_type IN ('USER','AGENT','SYSTEM')),
    content          TEXT,
    content_type     TEXT    NOT NULL DEFAULT 'TEXT',
    media_url        TEXT,
    message_sid      TEXT,
    tool_calls_json  TEXT,
    tokens_used      INTEGER,
    created_at       TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now'))
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation
    ON messages(conversation_id, created_at);

CREATE TABLE IF NOT EXISTS vendor_links (
    whatsapp_number  TEXT PRIMARY KEY,
    wp_user_id       INTEGER NOT NULL,
    wp_store_id      INTEGER,
    store_name       TEXT,
    store_url        TEXT,
    verified         INTEGER NOT NULL DEFAULT 0,
    verified_at      TEXT,
    created_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now')),
    updated_at       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now'))
);

CREATE INDEX IF NOT EXISTS idx_vendor_links_user
    ON vendor_links(wp_user_id);

CREATE TABLE IF NOT EXISTS action_logs (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    whatsapp_number  TEXT    NOT NULL,
    action           TEXT    NOT NULL,
    tool_name        TEXT    NOT NULL,
    input_json       TEXT,
    output_json      TEXT,
    success          INTEGER NOT NULL,
    error_message    TEXT,
    duration_ms      INTEGER,
    created_at       TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f','now'))
);

CREATE INDEX IF NOT EXISTS idx_action_logs_number
    ON action_logs(whatsapp_number, created_at);
"""


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored UTC timestamp into an aware datetime."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the same layout SQLite's defaults use."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]


class Database:
    """Async SQLite database manager."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Open connection and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA foreign_keys=ON")
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()
        logger.info("database_initialized", path=self._db_path)

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._conn

    async def ping(self) -> bool:
        """Cheap liveness query for health checks."""
        try:
            cursor = await self.conn.execute("SELECT 1")
            await cursor.fetchone()
            return True
        except Exception as e:
            logger.error("database_ping_failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None
            logger.info("database_closed")
