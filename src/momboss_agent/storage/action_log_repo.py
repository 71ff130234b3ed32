"""Append-only audit log of tool invocations and system actions."""

from __future__ import annotations

import json
from typing import Any

from momboss_agent.storage.database import Database, format_timestamp, parse_timestamp
from momboss_agent.storage.models import ActionLogEntry


def _to_json(value: Any) -> str | None:
    if value is None:
        return None
    return json.dumps(value, default=str)


class ActionLogRepository:
    """Writes and reads the action_logs table."""

    def __init__(self, db: Database):
        self._db = db

    async def append(self, entry: ActionLogEntry) -> int:
        cursor = await self._db.conn.execute(
            """INSERT INTO action_logs
               (whatsapp_number, action, tool_name, input_json, output_json,
                success, error_message, duration_ms, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.whatsapp_number,
                entry.action,
                entry.tool_name,
                _to_json(entry.input),
                _to_json(entry.output),
                int(entry.success),
                entry.error_message,
                entry.duration_ms,
                format_timestamp(entry.created_at),
            ),
        )
        await self._db.conn.commit()
        return cursor.lastrowid  # type: ignore[return-value]

    async def list_for_number(self, whatsapp_number: str, limit: int = 50) -> list[ActionLogEntry]:
        """Most recent entries for a number, oldest first."""
        cursor = await self._db.conn.execute(
            """SELECT * FROM action_logs
               WHERE whatsapp_number = ?
               ORDER BY created_at DESC, id DESC
               LIMIT ?""",
            (whatsapp_number, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in reversed(rows)]

    @staticmethod
    def _row_to_entry(row) -> ActionLogEntry:
        return ActionLogEntry(
            id=row["id"],
            whatsapp_number=row["whatsapp_number"],
            action=row["action"],
            tool_name=row["tool_name"],
            input=json.loads(row["input_json"]) if row["input_json"] else None,
            output=json.loads(row["output_json"]) if row["output_json"] else None,
            success=bool(row["success"]),
            error_message=row["error_message"],
            duration_ms=row["duration_ms"],
            created_at=parse_timestamp(row["created_at"]),
        )
