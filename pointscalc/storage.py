# pointscalc/storage.py
import os
import sqlite3
import datetime
import pytz
from contextlib import closing
from typing import Dict, Optional, Tuple

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .errors import PersistenceError
from .logger import get_logger

logger = get_logger(__name__)

DB_PATH = os.getenv(
    "POINTS_DB_PATH",
    os.path.join(os.path.expanduser("~"), ".points_calculator", "points.sqlite3"),
)


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class SqliteBlobStorage:
    """
    Key-value blobs in a single SQLite table.
    Each set() replaces the whole value for a key; last writer wins.
    """

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path

    def _connect(self):
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def ensure_db(self):
        try:
            with closing(self._connect()) as con, con:
                cur = con.cursor()
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT,
                        updated_at TEXT
                    )
                """
                )
                con.commit()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open storage at {self.db_path}: {e}") from e

    def _row(self, key: str) -> Optional[Tuple[str, str]]:
        self.ensure_db()
        try:
            with closing(self._connect()) as con, con:
                cur = con.cursor()
                cur.execute("SELECT value, updated_at FROM kv WHERE key=?", (key,))
                return cur.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read '{key}': {e}") from e

    def get(self, key: str) -> Optional[str]:
        row = self._row(key)
        return row[0] if row else None

    def updated_at(self, key: str) -> Optional[str]:
        row = self._row(key)
        return row[1] if row else None

    @retry(
        retry=retry_if_exception_type(sqlite3.OperationalError),
        wait=wait_exponential(multiplier=0.05, max=1) + wait_random(0, 0.05),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    def _write(self, key: str, value: str, ts: str):
        with closing(self._connect()) as con, con:
            cur = con.cursor()
            cur.execute(
                """
                INSERT INTO kv (key, value, updated_at)
                VALUES (?,?,?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
            """,
                (key, value, ts),
            )
            con.commit()

    def set(self, key: str, value: str):
        self.ensure_db()
        ts = now_utc_iso()
        try:
            self._write(key, value, ts)
        except sqlite3.Error as e:
            logger.error("Failed to write '%s' to %s: %s", key, self.db_path, e)
            raise PersistenceError(f"Failed to write '{key}': {e}") from e
        logger.debug("Wrote %d bytes under '%s' at %s.", len(value), key, ts)


class MemoryBlobStorage:
    """Dict-backed storage; nothing outlives the process."""

    def __init__(self):
        self._data: Dict[str, Tuple[str, str]] = {}

    def get(self, key: str) -> Optional[str]:
        row = self._data.get(key)
        return row[0] if row else None

    def updated_at(self, key: str) -> Optional[str]:
        row = self._data.get(key)
        return row[1] if row else None

    def set(self, key: str, value: str):
        self._data[key] = (value, now_utc_iso())
