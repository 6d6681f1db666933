# Rev 1.0.0

"""SQLite connection, unit of work & migration runner (Rev 1.0.0)
- WAL mode, foreign_keys=ON, autocommit connection (isolation_level=None)
- transaction(): BEGIN IMMEDIATE ... COMMIT/ROLLBACK; nested calls join the outer one
- Applies SQL files in stepladder/data/migrations in lexical order
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
"""
from __future__ import annotations
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime, timezone
from typing import Iterator


from ..utils.paths import DB_PATH, MIGRATIONS_DIR


log = logging.getLogger(__name__)


class Database:
    def __init__(self, path: Path | str = DB_PATH) -> None:
        self.path = Path(path)
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute("PRAGMA busy_timeout=5000;")
        self.conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        self._lock = threading.RLock()
        self._depth = 0
        log.info("SQLite open %s", self.path)


    def close(self) -> None:
        self.conn.close()


    # ---- unit of work ----
    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """One write transaction per logical operation.

        BEGIN IMMEDIATE takes the write lock up front, so a read-modify-write
        cascade cannot interleave with another writer on the same file.
        """
        with self._lock:
            outer = self._depth == 0
            if outer:
                self.conn.execute("BEGIN IMMEDIATE;")
            self._depth += 1
            try:
                yield self.conn
            except BaseException:
                self._depth -= 1
                if outer:
                    self.conn.execute("ROLLBACK;")
                raise
            else:
                self._depth -= 1
                if outer:
                    self.conn.execute("COMMIT;")


    # ---- migrations ----
    def applied(self) -> set[str]:
        rows = self.conn.execute("SELECT filename FROM schema_migrations").fetchall()
        return {r[0] for r in rows}


    def apply_sql(self, sql: str) -> None:
        self.conn.executescript(sql)


    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        applied = self.applied()
        to_apply = [p for p in sorted(migrations_dir.glob("*.sql")) if p.name not in applied]
        for p in to_apply:
            sql = p.read_text(encoding="utf-8")
            self.apply_sql(sql)
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
                (p.name, datetime.now(timezone.utc).isoformat()),
            )
            log.info("Applied migration %s", p.name)
        return [p.name for p in to_apply]
