from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, TypeVar

from chatmate.errors import PersistenceError
from chatmate.i18n import coerce_locale
from chatmate.models import DEFAULT_LOCALE, Chat, ChatMember, Locale, MemberInput

T = TypeVar("T")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _persistence(method: Callable[..., T]) -> Callable[..., T]:
    @wraps(method)
    def wrapper(self: "Storage", *args: Any, **kwargs: Any) -> T:
        try:
            with self._lock:
                return method(self, *args, **kwargs)
        except sqlite3.Error as exc:
            raise PersistenceError(f"{method.__name__} failed: {exc}") from exc

    return wrapper


class Storage:
    """sqlite-backed store for chats and their members.

    The connection is shared between worker threads, so every operation runs
    under one lock.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _ensure_column(self, table: str, column: str, ddl: str) -> None:
        cur = self._conn.cursor()
        cur.execute(f"PRAGMA table_info({table})")
        cols = {row["name"] for row in cur.fetchall()}
        if column not in cols:
            cur.execute(f"ALTER TABLE {table} ADD COLUMN {ddl}")
            self._conn.commit()

    def _init_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS chats (
                chat_id INTEGER PRIMARY KEY,
                locale TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS chat_members (
                chat_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                first_name TEXT,
                last_name TEXT,
                username TEXT,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (chat_id, user_id),
                FOREIGN KEY (chat_id) REFERENCES chats(chat_id)
            )
            """
        )
        self._conn.commit()

        # Databases created before birthdays were tracked
        self._ensure_column("chat_members", "birthday", "birthday TEXT")

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @_persistence
    def ensure_chat(self, chat_id: int, default_locale: Locale) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            INSERT INTO chats (chat_id, locale, created_at)
            VALUES (?, ?, ?)
            ON CONFLICT(chat_id) DO NOTHING
            """,
            (chat_id, default_locale.value, _utc_now()),
        )
        self._conn.commit()

    @_persistence
    def get_chat(self, chat_id: int) -> Chat | None:
        cur = self._conn.cursor()
        cur.execute("SELECT chat_id, locale, created_at FROM chats WHERE chat_id = ?", (chat_id,))
        row = cur.fetchone()
        if not row:
            return None
        return Chat(chat_id=row["chat_id"], locale=coerce_locale(row["locale"]), created_at=row["created_at"])

    @_persistence
    def get_chat_locale(self, chat_id: int) -> Locale:
        cur = self._conn.cursor()
        cur.execute("SELECT locale FROM chats WHERE chat_id = ?", (chat_id,))
        row = cur.fetchone()
        if not row:
            return DEFAULT_LOCALE
        return coerce_locale(row["locale"])

    @_persistence
    def set_chat_locale(self, chat_id: int, locale: Locale) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            INSERT INTO chats (chat_id, locale, created_at)
            VALUES (?, ?, ?)
            ON CONFLICT(chat_id) DO UPDATE SET
                locale=excluded.locale
            """,
            (chat_id, locale.value, _utc_now()),
        )
        self._conn.commit()

    @_persistence
    def upsert_member(self, chat_id: int, user: MemberInput) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            INSERT INTO chat_members (chat_id, user_id, first_name, last_name, username, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(chat_id, user_id) DO UPDATE SET
                first_name=excluded.first_name,
                last_name=excluded.last_name,
                username=excluded.username,
                updated_at=excluded.updated_at
            """,
            (chat_id, user.user_id, user.first_name, user.last_name, user.username, _utc_now()),
        )
        self._conn.commit()

    @_persistence
    def list_members(self, chat_id: int) -> list[ChatMember]:
        cur = self._conn.cursor()
        cur.execute(
            """
            SELECT chat_id, user_id, first_name, last_name, username, birthday
            FROM chat_members
            WHERE chat_id = ?
            """,
            (chat_id,),
        )
        return [
            ChatMember(
                chat_id=row["chat_id"],
                user_id=row["user_id"],
                first_name=row["first_name"],
                last_name=row["last_name"],
                username=row["username"],
                birthday=row["birthday"],
            )
            for row in cur.fetchall()
        ]

    @_persistence
    def set_birthday(self, chat_id: int, user_id: int, iso_date: str) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            UPDATE chat_members
            SET birthday = ?, updated_at = ?
            WHERE chat_id = ? AND user_id = ?
            """,
            (iso_date, _utc_now(), chat_id, user_id),
        )
        if cur.rowcount == 0:
            self._conn.rollback()
            raise PersistenceError(f"Member not found: chat_id={chat_id} user_id={user_id}")
        self._conn.commit()
