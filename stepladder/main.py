# Rev 1.0.0

# stepladder/main.py  (Rev 1.0.0)
# Headless bootstrap: Qt core app, logging, DB + migrations, service wiring.
from __future__ import annotations
import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from PySide6.QtCore import QCoreApplication

from .app_context import AppContext
from .utils.config import load_settings
from .utils.logging_setup import APP_NAME, get_logger, setup_logging
from .utils.paths import ensure_dirs


def bootstrap(settings: Optional[Dict[str, Any]] = None, *, log_dir: Optional[Path] = None) -> AppContext:
    settings = settings or load_settings()
    logfile = setup_logging(APP_NAME, level_name=settings["logging"]["level"], log_dir=log_dir)
    get_logger("main").info("Log file: %s", logfile)
    return AppContext.create(settings=settings)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="stepladder", description="Open the stepladder database and report its state")
    p.add_argument("--db", help="Path to SQLite DB (overrides settings and STEPLADDER_DB)")
    ns = p.parse_args(argv if argv is not None else sys.argv[1:])

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setOrganizationName(APP_NAME)
    app.setApplicationName(APP_NAME)

    ensure_dirs()
    settings = load_settings()
    if ns.db:
        settings["database"]["path"] = ns.db

    ctx = bootstrap(settings)
    try:
        applied = sorted(ctx.db.applied())
        print(f"DB: {settings['database']['path']}")
        print(f"Migrations applied: {', '.join(applied) or '-'}")
    finally:
        ctx.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
