# stores/alert_store.py

"""
Alert persistence backends
"""

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from worker.core.exceptions import SelectionInputError, StoreError
from worker.models.alert import Alert

logger = logging.getLogger(__name__)

# Fixed-width UTC timestamps so string comparison in SQL follows time order
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


class AlertStore(Protocol):
    async def active_alerts(self, now: datetime) -> List[Alert]:
        """All alerts with start <= now, processed or not, in any order"""
        ...

    async def save(self, alert: Alert) -> None:
        """Persist one alert atomically. Raises StoreError on failure."""
        ...

    async def add(self, alert: Alert) -> None: ...

    async def get(self, alert_id: str) -> Optional[Alert]: ...


class InMemoryAlertStore:
    """Dict-backed store. Records are copied in and out so callers never share state with it."""

    def __init__(self):
        self._alerts: Dict[str, Alert] = {}

    async def add(self, alert: Alert) -> None:
        self._alerts[alert.id] = alert.model_copy(deep=True)

    async def get(self, alert_id: str) -> Optional[Alert]:
        alert = self._alerts.get(alert_id)
        return alert.model_copy(deep=True) if alert else None

    async def active_alerts(self, now: datetime) -> List[Alert]:
        return [a.model_copy(deep=True) for a in self._alerts.values() if a.start <= now]

    async def save(self, alert: Alert) -> None:
        if alert.id not in self._alerts:
            raise StoreError(f"Alert {alert.id} does not exist")
        self._alerts[alert.id] = alert.model_copy(deep=True)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SQLiteAlertStore:
    """
    SQLite-backed store.

    Uses a single `alerts` table. Each save is one UPDATE in its own
    transaction, so a record is either fully written or left untouched.
    Blocking sqlite calls run in a worker thread.
    """

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            # starts_at is nullable so rows written by other tools can be rejected on read
            conn.execute("""
                CREATE TABLE IF NOT EXISTS alerts (
                    id              TEXT    PRIMARY KEY,
                    starts_at       TEXT,
                    ends_at         TEXT,
                    title           TEXT    NOT NULL DEFAULT '',
                    message         TEXT    NOT NULL DEFAULT '',
                    was_processed   INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_alerts_starts_at ON alerts(starts_at)")

    def _row_to_alert(self, row: sqlite3.Row) -> Alert:
        if not row["starts_at"]:
            raise SelectionInputError(f"Alert {row['id']} has no start", alert_id=row["id"])
        try:
            return Alert(
                id=row["id"],
                start=parse_timestamp(row["starts_at"]),
                end=parse_timestamp(row["ends_at"]) if row["ends_at"] else None,
                title=row["title"] or "",
                message=row["message"] or "",
                was_processed=bool(row["was_processed"]),
            )
        except ValueError as e:
            raise SelectionInputError(f"Alert {row['id']} is malformed: {e}", alert_id=row["id"]) from e

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _fetch_active(self, now: datetime) -> List[Alert]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM alerts WHERE starts_at IS NULL OR starts_at = '' OR starts_at <= ?",
                (format_timestamp(now),),
            ).fetchall()
        finally:
            conn.close()
        return [self._row_to_alert(row) for row in rows]

    def _fetch_one(self, alert_id: str) -> Optional[Alert]:
        conn = self._connect()
        try:
            row = conn.execute("SELECT * FROM alerts WHERE id = ?", (alert_id,)).fetchone()
        finally:
            conn.close()
        return self._row_to_alert(row) if row else None

    def _insert(self, alert: Alert) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    "INSERT INTO alerts (id, starts_at, ends_at, title, message, was_processed) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        alert.id,
                        format_timestamp(alert.start),
                        format_timestamp(alert.end) if alert.end else None,
                        alert.title,
                        alert.message,
                        int(alert.was_processed),
                    ),
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to add alert {alert.id}: {e}") from e
        logger.info(f"Added alert {alert.id} to database")

    def _update(self, alert: Alert) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                cur = conn.execute(
                    "UPDATE alerts SET starts_at = ?, ends_at = ?, title = ?, message = ?, was_processed = ? WHERE id = ?",
                    (
                        format_timestamp(alert.start),
                        format_timestamp(alert.end) if alert.end else None,
                        alert.title,
                        alert.message,
                        int(alert.was_processed),
                        alert.id,
                    ),
                )
                if cur.rowcount != 1:
                    raise StoreError(f"Alert {alert.id} does not exist")
        except sqlite3.Error as e:
            raise StoreError(f"Failed to save alert {alert.id}: {e}") from e
        finally:
            conn.close()

    async def add(self, alert: Alert) -> None:
        await asyncio.to_thread(self._insert, alert)

    async def get(self, alert_id: str) -> Optional[Alert]:
        return await asyncio.to_thread(self._fetch_one, alert_id)

    async def active_alerts(self, now: datetime) -> List[Alert]:
        return await asyncio.to_thread(self._fetch_active, now)

    async def save(self, alert: Alert) -> None:
        await asyncio.to_thread(self._update, alert)


def build_alert_store(backend: str, sqlite_path: str) -> AlertStore:
    """Create the configured store backend"""
    if backend == "sqlite":
        logger.info(f"Using SQLite alert store at {sqlite_path}")
        return SQLiteAlertStore(sqlite_path)
    if backend == "memory":
        logger.info("Using in-memory alert store")
        return InMemoryAlertStore()
    raise ValueError(f"Unknown alert store backend: {backend}")
