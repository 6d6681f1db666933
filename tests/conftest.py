# Rev 1.0.0

"""Pytest fixtures for stepladder (Rev 1.0.0)"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest

from stepladder.app_context import AppContext
from stepladder.repositories.db import Database
from stepladder.services.context import RequestContext


class FixedClock:
    """Controllable clock; advance() moves time forward for expiry tests."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


@pytest.fixture()
def db_conn(tmp_path: Path):
    db = Database(path=str(tmp_path / "raw.db"))
    try:
        db.run_migrations()
        yield db.conn
    finally:
        db.close()


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def app(tmp_path: Path):
    settings = {
        "database": {"path": str(tmp_path / "test.db")},
        "invitations": {"ttl_days": 7},
        "logging": {"level": "DEBUG"},
    }
    ctx = AppContext.create(settings=settings)
    try:
        yield ctx
    finally:
        ctx.close()


@pytest.fixture()
def owner(app) -> str:
    return app.users.create_user(name="Olivia Owner", email="olivia@example.com")


@pytest.fixture()
def editor(app) -> str:
    return app.users.create_user(name="Eli Editor", email="eli@example.com")


@pytest.fixture()
def viewer(app) -> str:
    return app.users.create_user(name=None, email="vera@example.com")


@pytest.fixture()
def stranger(app) -> str:
    return app.users.create_user(name="Sam Stranger")


@pytest.fixture()
def as_user(clock):
    def _ctx(user_id) -> RequestContext:
        return RequestContext(user_id=user_id, clock=clock)
    return _ctx


@pytest.fixture()
def make_project(app, owner, as_user):
    """Build a project owned by `owner` with one step per entry of `subtask_counts`.

    Returns (project_id, [step_id...], [[subtask_id...] per step]).
    """
    def _make(subtask_counts: List[int], name: str = "Demo"):
        ctx = as_user(owner)
        pid = app.projects.create(ctx, name, "#3b82f6")
        step_ids, sub_ids = [], []
        for i, count in enumerate(subtask_counts):
            sid = app.steps.create(ctx, pid, f"Step {i}")
            step_ids.append(sid)
            sub_ids.append([app.subtasks.create(ctx, sid, f"Subtask {i}.{j}") for j in range(count)])
        return pid, step_ids, sub_ids
    return _make


@pytest.fixture()
def share(app, owner, as_user):
    """Invite `user_id` with `permission` and accept on their behalf."""
    def _share(project_id: str, user_id: str, permission: str) -> None:
        token = app.invitations.create(as_user(owner), project_id, permission)
        app.invitations.accept(as_user(user_id), token)
    return _share
