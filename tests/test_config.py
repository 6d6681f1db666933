# Rev 1.0.0
# tests/test_config.py
from __future__ import annotations

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path

import pytest

from stepladder.app_context import AppContext
from stepladder.main import bootstrap
from stepladder.services.context import RequestContext
from stepladder.utils.config import invitation_ttl_days, load_settings, save_settings
from stepladder.utils.logging_setup import get_logger, setup_logging


@pytest.fixture()
def clean_env(monkeypatch):
    monkeypatch.delenv("STEPLADDER_DB", raising=False)
    monkeypatch.delenv("STEPLADDER_LOG_LEVEL", raising=False)


@pytest.fixture()
def restore_logging(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in before:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def test_defaults_when_no_file(tmp_path: Path, clean_env):
    settings = load_settings(tmp_path / "missing.json")
    assert settings["invitations"]["ttl_days"] == 7
    assert settings["logging"]["level"] == "INFO"
    assert settings["database"]["path"].endswith("stepladder.db")


def test_file_overlays_defaults(tmp_path: Path, clean_env):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"invitations": {"ttl_days": 3}}), encoding="utf-8")
    settings = load_settings(path)
    assert invitation_ttl_days(settings) == 3
    # untouched sections keep their defaults
    assert settings["logging"]["level"] == "INFO"


def test_env_overrides_file(tmp_path: Path, monkeypatch):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"database": {"path": "/from/file.db"}}), encoding="utf-8")
    monkeypatch.setenv("STEPLADDER_DB", str(tmp_path / "env.db"))
    monkeypatch.setenv("STEPLADDER_LOG_LEVEL", "debug")
    settings = load_settings(path)
    assert settings["database"]["path"] == str(tmp_path / "env.db")
    assert settings["logging"]["level"] == "DEBUG"


def test_broken_file_falls_back_to_defaults(tmp_path: Path, clean_env):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert invitation_ttl_days(load_settings(path)) == 7


def test_save_then_load(tmp_path: Path, clean_env):
    path = tmp_path / "nested" / "settings.json"
    data = load_settings(path)
    data["invitations"]["ttl_days"] = 14
    save_settings(data, path)
    assert invitation_ttl_days(load_settings(path)) == 14


def test_ttl_setting_reaches_invitations(tmp_path: Path, clean_env, clock):
    settings = load_settings(tmp_path / "none.json")
    settings["database"]["path"] = str(tmp_path / "ttl.db")
    settings["invitations"]["ttl_days"] = 2
    ctx = AppContext.create(settings=settings)
    try:
        uid = ctx.users.create_user(name="Tess")
        me = RequestContext(uid, clock)
        pid = ctx.projects.create(me, "Short fuse", "#84cc16")
        token = ctx.invitations.create(me, pid, "view")
        assert ctx.invitations.get_details(me, token).expires_at == clock() + timedelta(days=2)
    finally:
        ctx.close()


def test_setup_logging_writes_file_once(tmp_path: Path, restore_logging):
    logfile = setup_logging("stepladder-test", level_name="debug", log_dir=tmp_path)
    setup_logging("stepladder-test", level_name="debug", log_dir=tmp_path)

    get_logger("tests").debug("hello from the test")
    for h in logging.getLogger().handlers:
        h.flush()

    text = logfile.read_text(encoding="utf-8")
    assert text.count("hello from the test") == 1
    assert "| DEBUG | stepladder.tests | hello from the test" in text


def test_bootstrap_opens_migrated_db(tmp_path: Path, clean_env, restore_logging):
    settings = load_settings(tmp_path / "none.json")
    settings["database"]["path"] = str(tmp_path / "boot.db")
    ctx = bootstrap(settings, log_dir=tmp_path / "logs")
    try:
        assert ctx.db.applied() == {"0001_init.sql"}
    finally:
        ctx.close()
    assert (tmp_path / "logs" / "stepladder.log").exists()
