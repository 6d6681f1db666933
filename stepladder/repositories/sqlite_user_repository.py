# Rev 1.0.0
# stepladder – SQLiteUserRepository
# Users belong to the auth layer; this is the read side plus a seeding insert.
from __future__ import annotations
from datetime import datetime
from typing import Iterable, Dict, Optional

from ..models.entities import User
from ..utils.clock import to_iso, utc_now
from .base import SQLiteRepository, new_id


class SQLiteUserRepository(SQLiteRepository):

    def create_user(
        self,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        uid = user_id or new_id()
        self._execute(
            "INSERT INTO users(id, name, email, created_at_utc) VALUES (?, ?, ?, ?)",
            (uid, name, email, to_iso(now or utc_now())),
        )
        return uid

    def get_user(self, user_id: str) -> Optional[User]:
        row = self._fetch_one("SELECT id, name, email FROM users WHERE id = ?", (user_id,))
        return User.from_row(row) if row else None

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" * len(ids))
        rows = self._fetch_all(
            f"SELECT id, name, email FROM users WHERE id IN ({placeholders})", tuple(ids)
        )
        return {r["id"]: User.from_row(r) for r in rows}
