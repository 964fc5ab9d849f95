"""SQLite cache for geocoding responses."""
from __future__ import annotations

import json
import sqlite3
import threading
import time
from typing import Any, Optional

from .normalize import normalize


def make_geocode_cache_key(query: str, limit: int, language: str) -> str:
    return f"{normalize(query)}|{int(limit)}|{language}"


class Cache:
    def __init__(self, db_path: str, ttl_seconds: int = 86400) -> None:
        self.db_path = db_path
        self.ttl_seconds = max(0, int(ttl_seconds))
        self._lock = threading.Lock()
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._configure_conn()
        self._init_db()

    def _configure_conn(self) -> None:
        cur = self.conn.cursor()
        try:
            cur.execute("PRAGMA journal_mode=WAL")
            cur.fetchone()
        except sqlite3.DatabaseError:
            pass

    def _init_db(self) -> None:
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS geocode_cache (
                key TEXT PRIMARY KEY,
                response_json TEXT,
                created_at REAL
            )
            """
        )
        self.conn.commit()

    def get_geocode(self, key: str, now: Optional[float] = None) -> Optional[Any]:
        now = time.time() if now is None else now
        with self._lock:
            cur = self.conn.cursor()
            cur.execute("SELECT response_json, created_at FROM geocode_cache WHERE key = ?", (key,))
            row = cur.fetchone()
        if not row:
            return None
        if now - float(row["created_at"]) > self.ttl_seconds:
            return None
        return json.loads(row["response_json"])

    def set_geocode(self, key: str, response: Any, now: Optional[float] = None) -> None:
        now = time.time() if now is None else now
        payload = json.dumps(response, ensure_ascii=False)
        with self._lock:
            cur = self.conn.cursor()
            cur.execute(
                """
                INSERT INTO geocode_cache (key, response_json, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    response_json=excluded.response_json,
                    created_at=excluded.created_at
                """,
                (key, payload, now),
            )
            self.conn.commit()

    def purge_expired(self, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            cur = self.conn.cursor()
            cur.execute("DELETE FROM geocode_cache WHERE created_at < ?", (now - self.ttl_seconds,))
            self.conn.commit()
            return cur.rowcount

    def close(self) -> None:
        with self._lock:
            self.conn.close()
