"""
Audit log service for recording and querying workflow events.

Uses Lakebase PostgreSQL (audit_log table) when PGHOST is set.
When not using PostgreSQL, uses LocalFileAuditStore (JSON file in ~/.flowbuilder/audit_log/).
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from app.db import get_pool, is_postgres_available

logger = logging.getLogger(__name__)

DEFAULT_TARGET = "WORKFLOWS"


@dataclass
class AuditEntry:
    """A single audit log record."""

    id: str
    timestamp: datetime
    action: str
    target: str
    details: str
    status: str


def _get_local_store(base_dir: Path | None = None) -> LocalFileAuditStore:
    """Return LocalFileAuditStore for testing or when PGHOST is not set."""
    if base_dir is None:
        base_dir = Path.home() / ".flowbuilder" / "audit_log"
    return LocalFileAuditStore(base_dir=base_dir)


class LocalFileAuditStore:
    """Stores audit entries in a JSON file for local dev/testing (no PostgreSQL)."""

    def __init__(self, base_dir: Path | str) -> None:
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    @property
    def _path(self) -> Path:
        return self._base / "events.json"

    def _entry_to_dict(self, e: AuditEntry) -> dict:
        return {
            "id": e.id,
            "timestamp": e.timestamp.isoformat(),
            "action": e.action,
            "target": e.target,
            "details": e.details,
            "status": e.status,
        }

    def _dict_to_entry(self, d: dict) -> AuditEntry:
        timestamp = d.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        return AuditEntry(
            id=d["id"],
            timestamp=timestamp or datetime.now(tz=timezone.utc),
            action=d["action"],
            target=d.get("target", DEFAULT_TARGET),
            details=d.get("details", ""),
            status=d["status"],
        )

    def record(self, entry: AuditEntry) -> None:
        entries = self.list_events()
        entries.insert(0, entry)
        with open(self._path, "w") as f:
            json.dump([self._entry_to_dict(e) for e in entries], f, indent=2)

    def list_events(self, limit: int | None = None) -> list[AuditEntry]:
        if not self._path.exists():
            return []
        with open(self._path) as f:
            entries = [self._dict_to_entry(d) for d in json.load(f)]
        return entries[:limit] if limit is not None else entries


def record_event(
    action: str,
    details: str,
    status: str = "success",
    target: str = DEFAULT_TARGET,
) -> AuditEntry:
    """
    Record an audit entry (e.g. node added, workflow executed).

    Uses LocalFileAuditStore when PGHOST is not set.
    """
    entry = AuditEntry(
        id=str(uuid.uuid4()),
        timestamp=datetime.now(tz=timezone.utc),
        action=action,
        target=target,
        details=details,
        status=status,
    )
    logger.info("audit action=%s status=%s details=%s", action, status, details)
    if is_postgres_available():
        pool = get_pool()
        with pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO audit_log (id, logged_at, action, target, details, status)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (
                        entry.id,
                        entry.timestamp,
                        entry.action,
                        entry.target,
                        entry.details,
                        entry.status,
                    ),
                )
    else:
        _get_local_store().record(entry)
    return entry


def list_events(limit: int = 100) -> list[AuditEntry]:
    """List audit entries, newest first. Uses LocalFileAuditStore when PGHOST is not set."""
    if not is_postgres_available():
        return _get_local_store().list_events(limit)
    pool = get_pool()
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, logged_at, action, target, details, status
                FROM audit_log
                ORDER BY logged_at DESC
                LIMIT %s
                """,
                (limit,),
            )
            rows = cur.fetchall()
    return [
        AuditEntry(
            id=str(row[0]),
            timestamp=row[1],
            action=row[2],
            target=row[3],
            details=row[4] or "",
            status=row[5],
        )
        for row in rows
    ]
