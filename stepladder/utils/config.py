# stepladder/utils/config.py
# Rev 1.0.0
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional
from .paths import DB_PATH, config_dir

SETTINGS_FILE_NAME = "settings.json"

_DEFAULTS: Dict[str, Any] = {
    "database": {
        "path": str(DB_PATH),
    },
    "invitations": {
        "ttl_days": 7,
    },
    "logging": {
        "level": "INFO",
    },
}


def settings_file() -> Path:
    return config_dir() / SETTINGS_FILE_NAME


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """Defaults, overlaid by the JSON settings file, overlaid by env."""
    path = path or settings_file()
    data = copy.deepcopy(_DEFAULTS)
    if path.exists():
        try:
            data = _merge(data, json.loads(path.read_text(encoding="utf-8")))
        except json.JSONDecodeError:
            data = copy.deepcopy(_DEFAULTS)

    # env wins over file
    if os.environ.get("STEPLADDER_DB"):
        data["database"]["path"] = os.environ["STEPLADDER_DB"]
    if os.environ.get("STEPLADDER_LOG_LEVEL"):
        data["logging"]["level"] = os.environ["STEPLADDER_LOG_LEVEL"].upper()
    return data


def save_settings(data: Dict[str, Any], path: Optional[Path] = None) -> None:
    path = path or settings_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def invitation_ttl_days(settings: Dict[str, Any]) -> int:
    return int(settings.get("invitations", {}).get("ttl_days", _DEFAULTS["invitations"]["ttl_days"]))
