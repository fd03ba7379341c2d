"""
Database Module - SQLite storage for subscribers and API usage counters

The proxy keeps two tables:
- subscribers: who may call the proxy, on which plan, until when
- api_usage: per-user, per-month, per-endpoint call counters used for quota
"""

import hashlib
import hmac
import sqlite3
import threading
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, List, Any

from config import DB_PATH, DATABASE


def current_period(now: Optional[datetime] = None) -> str:
    """Usage period key (calendar month, UTC)."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m")


def hash_subscription_key(subscription_key: str) -> str:
    return hashlib.sha256(subscription_key.encode("utf-8")).hexdigest()


# ============================================================
# CONNECTION POOL
# ============================================================

class Database:
    """Thread-local SQLite connections with WAL mode"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or DB_PATH)
        self._local = threading.local()
        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local connection"""
        if not hasattr(self._local, 'conn') or self._local.conn is None:
            conn = sqlite3.connect(
                str(self.path),
                check_same_thread=False,
                timeout=DATABASE.busy_timeout / 1000
            )
            conn.row_factory = sqlite3.Row

            if DATABASE.wal_mode:
                conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(f"PRAGMA synchronous={DATABASE.synchronous}")

            self._local.conn = conn

        return self._local.conn

    @contextmanager
    def get_cursor(self):
        """Context manager for cursor with auto-commit"""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        """Fetch single row"""
        return self._get_connection().execute(query, params).fetchone()

    def fetchall(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        """Fetch all rows"""
        return self._get_connection().execute(query, params).fetchall()

    def close(self):
        conn = getattr(self._local, 'conn', None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    def _init_database(self):
        """Initialize database tables"""
        with self.get_cursor() as c:
            c.execute('''
                CREATE TABLE IF NOT EXISTS subscribers (
                    user_id TEXT PRIMARY KEY,
                    email TEXT UNIQUE NOT NULL,
                    key_hash TEXT NOT NULL,
                    plan TEXT DEFAULT 'pro',
                    expires_at REAL,
                    active INTEGER DEFAULT 1,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            c.execute('''
                CREATE TABLE IF NOT EXISTS api_usage (
                    user_id TEXT NOT NULL,
                    period TEXT NOT NULL,
                    api_type TEXT NOT NULL,
                    count INTEGER DEFAULT 0,
                    last_used REAL,
                    PRIMARY KEY (user_id, period, api_type)
                )
            ''')

            c.execute('CREATE INDEX IF NOT EXISTS idx_usage_user_period ON api_usage(user_id, period)')

    # ============================================================
    # SUBSCRIBERS
    # ============================================================

    def add_subscriber(
        self,
        email: str,
        subscription_key: str,
        plan: str = "pro",
        expires_at: Optional[float] = None,
        active: bool = True,
        user_id: Optional[str] = None,
    ) -> str:
        """Create or replace a subscriber. Returns the user id."""
        user_id = user_id or f"user_{uuid.uuid4().hex[:12]}"
        with self.get_cursor() as c:
            c.execute('''
                INSERT OR REPLACE INTO subscribers (user_id, email, key_hash, plan, expires_at, active)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (
                user_id,
                email.strip().lower(),
                hash_subscription_key(subscription_key),
                plan,
                expires_at,
                1 if active else 0,
            ))
        return user_id

    def get_subscriber(self, user_id: str) -> Optional[Dict[str, Any]]:
        row = self.fetchone('SELECT * FROM subscribers WHERE user_id = ?', (user_id,))
        return dict(row) if row else None

    def get_subscriber_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        row = self.fetchone(
            'SELECT * FROM subscribers WHERE email = ?', (email.strip().lower(),)
        )
        return dict(row) if row else None

    def verify_subscription_key(self, email: str, subscription_key: str) -> Optional[Dict[str, Any]]:
        """Return the subscriber if the email/key pair matches, else None."""
        subscriber = self.get_subscriber_by_email(email)
        if not subscriber:
            return None
        if not hmac.compare_digest(subscriber["key_hash"], hash_subscription_key(subscription_key)):
            return None
        return subscriber

    def set_subscription_active(self, user_id: str, active: bool) -> bool:
        with self.get_cursor() as c:
            c.execute(
                'UPDATE subscribers SET active = ? WHERE user_id = ?',
                (1 if active else 0, user_id),
            )
            return c.rowcount > 0

    # ============================================================
    # USAGE COUNTERS
    # ============================================================

    def increment_usage(self, user_id: str, api_type: str, period: Optional[str] = None) -> int:
        """Bump the counter for (user, month, endpoint). Returns the new count."""
        period = period or current_period()
        with self.get_cursor() as c:
            c.execute('''
                INSERT INTO api_usage (user_id, period, api_type, count, last_used)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(user_id, period, api_type)
                DO UPDATE SET count = count + 1, last_used = excluded.last_used
            ''', (user_id, period, api_type, time.time()))
        row = self.fetchone(
            'SELECT count FROM api_usage WHERE user_id = ? AND period = ? AND api_type = ?',
            (user_id, period, api_type),
        )
        return row["count"] if row else 0

    def get_monthly_usage(self, user_id: str, period: Optional[str] = None) -> int:
        """Total calls across all endpoints for the period."""
        period = period or current_period()
        row = self.fetchone(
            'SELECT COALESCE(SUM(count), 0) AS total FROM api_usage WHERE user_id = ? AND period = ?',
            (user_id, period),
        )
        return int(row["total"]) if row else 0

    def get_usage_breakdown(self, user_id: str, period: Optional[str] = None) -> Dict[str, int]:
        period = period or current_period()
        rows = self.fetchall(
            'SELECT api_type, count FROM api_usage WHERE user_id = ? AND period = ?',
            (user_id, period),
        )
        return {row["api_type"]: row["count"] for row in rows}
