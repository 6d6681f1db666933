# Rev 1.0.0
# stepladder/tools/migrate.py
#
#   stepladder-migrate up [--strict] [--db PATH] [--migrations-dir DIR]
#   stepladder-migrate status | rebuild | verify
#
# Shares the schema_migrations ledger with Database.run_migrations(); the CLI
# additionally records a sha256 per file so edited migrations can be spotted.

from __future__ import annotations

import argparse
import hashlib
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional

from ..repositories.db import Database
from ..utils.clock import utc_now
from ..utils.paths import DB_PATH, MIGRATIONS_DIR

REQUIRED_TABLES = (
    "users",
    "projects",
    "steps",
    "subtasks",
    "project_members",
    "invitations",
    "schema_migrations",
)
REQUIRED_INDEXES = ("idx_projects_owner", "idx_steps_project_order", "idx_subtasks_step", "idx_invitations_project")


class MigrationRunner:
    """One CLI invocation against one database file. Commands return exit codes."""

    def __init__(self, db_path: Path, migrations_dir: Path = MIGRATIONS_DIR):
        self.db_path = Path(db_path)
        self.migrations_dir = Path(migrations_dir)

    # ---- commands ----
    def up(self, strict: bool = False) -> int:
        db = self._open()
        try:
            applied = self._apply_pending(db.conn, strict=strict)
        finally:
            db.close()
        print(f"Applied {len(applied)} migration(s)." if applied else "No changes; already up to date.")
        return 0

    def status(self) -> int:
        db = self._open()
        try:
            ledger = self._ledger(db.conn)
        finally:
            db.close()
        pending = [p.name for p in self._files() if p.name not in ledger]
        print(f"DB: {self.db_path}")
        print(f"Applied count: {len(ledger)}")
        for name, row in ledger.items():
            print(f"  applied  {name}  {row['applied_at']}")
        print(f"Pending count: {len(pending)}")
        for name in pending:
            print(f"  pending  {name}")
        return 0

    def rebuild(self) -> int:
        for suffix in ("", "-wal", "-shm"):
            Path(f"{self.db_path}{suffix}").unlink(missing_ok=True)
        print(f"Removed {self.db_path}; rebuilding")
        return self.up()

    def verify(self) -> int:
        db = self._open()
        try:
            found = {
                r["name"]: r["type"]
                for r in db.conn.execute("SELECT name, type FROM sqlite_master WHERE type IN ('table', 'index')")
            }
            (mode,) = db.conn.execute("PRAGMA journal_mode;").fetchone()
        finally:
            db.close()

        missing_tables = [t for t in REQUIRED_TABLES if found.get(t) != "table"]
        if missing_tables:
            print("Missing tables:", ", ".join(missing_tables))
            return 2
        missing_indexes = [i for i in REQUIRED_INDEXES if found.get(i) != "index"]
        if missing_indexes:
            print("Missing indexes:", ", ".join(missing_indexes))
            return 3
        if str(mode).lower() != "wal":
            print(f"journal_mode is {mode}, expected wal")
            return 4
        print("Verification passed.")
        return 0

    # ---- internals ----
    def _open(self) -> Database:
        db = Database(self.db_path)
        cols = {r[1] for r in db.conn.execute("PRAGMA table_info(schema_migrations)")}
        if "sha256" not in cols:
            db.conn.execute("ALTER TABLE schema_migrations ADD COLUMN sha256 TEXT")
        return db

    def _files(self) -> List[Path]:
        return sorted(self.migrations_dir.glob("*.sql"))

    @staticmethod
    def _ledger(conn: sqlite3.Connection) -> Dict[str, sqlite3.Row]:
        rows = conn.execute("SELECT filename, sha256, applied_at FROM schema_migrations ORDER BY filename")
        return {r["filename"]: r for r in rows}

    def _apply_pending(self, conn: sqlite3.Connection, *, strict: bool) -> List[str]:
        ledger = self._ledger(conn)
        applied: List[str] = []
        for path in self._files():
            sql = path.read_text(encoding="utf-8")
            digest = hashlib.sha256(sql.encode("utf-8")).hexdigest()
            seen = ledger.get(path.name)
            if seen is not None:
                # rows written by Database.run_migrations() carry no hash
                if seen["sha256"] and seen["sha256"] != digest:
                    msg = f"{path.name} changed after it was applied (recorded {seen['sha256']}, now {digest})"
                    if strict:
                        raise RuntimeError(msg)
                    print(f"warning: {msg}")
                continue

            print(f"Applying migration: {path.name}")
            # executescript() commits anything open first, so the transaction lives in the script
            try:
                conn.executescript(f"BEGIN;\n{sql}\nCOMMIT;")
            except sqlite3.Error:
                if conn.in_transaction:
                    conn.execute("ROLLBACK;")
                raise
            conn.execute(
                "INSERT INTO schema_migrations (filename, applied_at, sha256) VALUES (?, ?, ?)",
                (path.name, utc_now().isoformat(), digest),
            )
            applied.append(path.name)
        return applied


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--db", type=Path, default=DB_PATH, help=f"SQLite file (default: {DB_PATH})")
    common.add_argument("--migrations-dir", type=Path, default=MIGRATIONS_DIR, help="Directory of *.sql migrations")

    p = argparse.ArgumentParser(prog="stepladder-migrate", description="SQLite migration runner for stepladder")
    sub = p.add_subparsers(dest="cmd", required=True)
    s_up = sub.add_parser("up", parents=[common], help="Apply pending migrations")
    s_up.add_argument("--strict", action="store_true", help="Fail when an applied migration file changed")
    s_up.set_defaults(run=lambda r, ns: r.up(strict=ns.strict))
    for name, text in (
        ("status", "List applied and pending migrations"),
        ("rebuild", "Delete the DB and migrate from scratch"),
        ("verify", "Check tables, indexes and WAL mode"),
    ):
        sub.add_parser(name, parents=[common], help=text).set_defaults(run=lambda r, ns: getattr(r, ns.cmd)())
    return p


def main(argv: Optional[list[str]] = None) -> int:
    ns = build_parser().parse_args(argv)
    return ns.run(MigrationRunner(ns.db, ns.migrations_dir), ns)


if __name__ == "__main__":
    raise SystemExit(main())
