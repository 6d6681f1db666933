# Rev 1.0.0
from __future__ import annotations
import sqlite3
import uuid
from typing import Any, List, Optional, Union


def new_id() -> str:
    return uuid.uuid4().hex


class SQLiteRepository:
    """
    Shared connection handling for the table repositories.
    Accepts a raw sqlite3.Connection or a wrapper exposing `.conn` / `.connect()`.
    Repositories never commit; the caller owns the transaction (Database.transaction()).
    """

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    def _conn(self) -> sqlite3.Connection:
        if isinstance(self._db_or_conn, sqlite3.Connection):
            return self._db_or_conn
        if hasattr(self._db_or_conn, "conn") and isinstance(self._db_or_conn.conn, sqlite3.Connection):
            return self._db_or_conn.conn
        if hasattr(self._db_or_conn, "connect"):
            maybe = self._db_or_conn.connect()
            if isinstance(maybe, sqlite3.Connection):
                return maybe
        raise RuntimeError(
            f"{type(self).__name__}: unable to obtain sqlite3.Connection (.conn/.connect() expected)."
        )

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        return self._conn().execute(sql, params).fetchall()

    def _fetch_one(self, sql: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        return self._conn().execute(sql, params).fetchone()

    def _execute(self, sql: str, params: tuple = ()) -> int:
        """Run a write and return the affected row count."""
        cur = self._conn().execute(sql, params)
        return cur.rowcount
