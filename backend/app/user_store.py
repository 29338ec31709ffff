from __future__ import annotations

import sqlite3
import threading
from pathlib import Path
from typing import Iterable, List, Optional

from passlib.context import CryptContext

from .errors import StorageError
from .models import Role

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def check_password(password: str, encoded: str) -> bool:
    try:
        return pwd_context.verify(password, encoded)
    except ValueError:
        # Unrecognised or malformed hash
        return False


def _encode_permissions(permissions: Optional[Iterable[str]]) -> str:
    if not permissions:
        return ""
    return ",".join([item.strip() for item in permissions if item and item.strip()])


def _decode_permissions(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


class UserStore:
    """SQLite-backed storage for user accounts."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._initialize()

    # ------------------------------------------------------------------
    # Low-level helpers
    # ------------------------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=30)
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                PRAGMA journal_mode=WAL;
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'member',
                    permissions TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
                CREATE INDEX IF NOT EXISTS idx_users_role ON users(role);
                """
            )

    def _fetch_one(self, query: str, params: tuple) -> Optional[sqlite3.Row]:
        try:
            with self._connect() as conn:
                return conn.execute(query, params).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_username(self, username: str) -> dict:
        row = self._fetch_one("SELECT * FROM users WHERE username = ?", (username.strip(),))
        if not row:
            raise KeyError("user_not_found")
        return self._serialize_user(row)

    def find_by_email(self, email: str) -> Optional[dict]:
        row = self._fetch_one("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
        return self._serialize_user(row) if row else None

    def list_users(self, role: Optional[Role] = None) -> List[dict]:
        query = "SELECT * FROM users"
        params: tuple = ()
        if role is not None:
            query += " WHERE role = ?"
            params = (role.value,)
        query += " ORDER BY username ASC"
        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return [self._serialize_user(row) for row in rows]

    def authenticate(self, email: str, password: str) -> Optional[dict]:
        row = self._fetch_one("SELECT * FROM users WHERE email = ?", (email.strip().lower(),))
        if not row or not check_password(password, row["password_hash"]):
            return None
        return self._serialize_user(row)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_user(
        self,
        *,
        username: str,
        email: str,
        password: str,
        role: Role = Role.MEMBER,
        permissions: Optional[Iterable[str]] = None,
    ) -> dict:
        username = username.strip()
        email = email.strip().lower()
        try:
            with self._lock:
                with self._connect() as conn:
                    taken = conn.execute(
                        "SELECT email, username FROM users WHERE email = ? OR username = ?",
                        (email, username),
                    ).fetchone()
                    if taken:
                        raise ValueError("email_exists" if taken["email"] == email else "username_exists")
                    conn.execute(
                        """
                        INSERT INTO users (username, email, password_hash, role, permissions)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (username, email, hash_password(password), role.value, _encode_permissions(permissions)),
                    )
        except sqlite3.IntegrityError as exc:
            raise ValueError("user_exists") from exc
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return self.get_by_username(username)

    def update_role(self, username: str, role: Role) -> dict:
        return self.update_user(username, role=role)

    def update_user(
        self,
        username: str,
        *,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[Role] = None,
        permissions: Optional[Iterable[str]] = None,
    ) -> dict:
        updates = []
        params: List[object] = []
        if email is not None and email.strip():
            updates.append("email = ?")
            params.append(email.strip().lower())
        if password:
            updates.append("password_hash = ?")
            params.append(hash_password(password))
        if role is not None:
            updates.append("role = ?")
            params.append(role.value)
        if permissions is not None:
            updates.append("permissions = ?")
            params.append(_encode_permissions(permissions))
        if not updates:
            return self.get_by_username(username)
        updates.append("updated_at = CURRENT_TIMESTAMP")
        params.append(username.strip())
        query = f"UPDATE users SET {', '.join(updates)} WHERE username = ?"
        try:
            with self._lock:
                with self._connect() as conn:
                    cursor = conn.execute(query, tuple(params))
                    if cursor.rowcount == 0:
                        raise KeyError("user_not_found")
        except sqlite3.IntegrityError as exc:
            raise ValueError("email_exists") from exc
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return self.get_by_username(username)

    # ------------------------------------------------------------------
    # Serialization helpers
    # ------------------------------------------------------------------

    def _serialize_user(self, row: sqlite3.Row) -> dict:
        return {
            "id": row["id"],
            "username": row["username"],
            "email": row["email"],
            "role": Role.parse(row["role"]),
            "permissions": _decode_permissions(row["permissions"]),
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
        }


__all__ = ["UserStore", "hash_password", "check_password"]
