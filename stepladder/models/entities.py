# Rev 1.0.0
"""Lightweight entities mirroring the SQLite schema (migration 0001).

Rows come back from the repositories as sqlite3.Row; `from_row` maps column
names (sort_order, *_utc) onto the entity fields.
"""
from __future__ import annotations
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ..utils.clock import from_iso, to_iso


def _iso_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: (to_iso(v) if isinstance(v, datetime) else v) for k, v in data.items()}


@dataclass
class User:
    id: str
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Unknown"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(id=row["id"], name=row["name"], email=row["email"])


@dataclass
class Project:
    id: str
    name: str
    owner_user_id: str
    color: str
    description: Optional[str] = None
    link: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Project":
        return cls(
            id=row["id"],
            name=row["name"],
            owner_user_id=row["owner_user_id"],
            color=row["color"],
            description=row["description"],
            link=row["link"],
            created_at=from_iso(row["created_at_utc"]),
            updated_at=from_iso(row["updated_at_utc"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _iso_fields(asdict(self))


@dataclass
class Step:
    id: str
    project_id: str
    title: str
    order: int
    is_completed: bool = False
    is_unlocked: bool = False
    description: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Step":
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            title=row["title"],
            order=int(row["sort_order"]),
            is_completed=bool(row["is_completed"]),
            is_unlocked=bool(row["is_unlocked"]),
            description=row["description"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Subtask:
    id: str
    step_id: str
    title: str
    order: int
    is_completed: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Subtask":
        return cls(
            id=row["id"],
            step_id=row["step_id"],
            title=row["title"],
            order=int(row["sort_order"]),
            is_completed=bool(row["is_completed"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProjectMember:
    id: str
    project_id: str
    user_id: str
    permission: str
    added_at: datetime
    added_by: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProjectMember":
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            user_id=row["user_id"],
            permission=row["permission"],
            added_at=from_iso(row["added_at_utc"]),
            added_by=row["added_by"],
        )


@dataclass
class Invitation:
    id: str
    project_id: str
    invited_by: str
    permission: str
    token: str
    expires_at: datetime
    status: str
    accepted_by: Optional[str] = None
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Invitation":
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            invited_by=row["invited_by"],
            permission=row["permission"],
            token=row["token"],
            expires_at=from_iso(row["expires_at_utc"]),
            status=row["status"],
            accepted_by=row["accepted_by"],
            accepted_at=from_iso(row["accepted_at_utc"]),
            created_at=from_iso(row["created_at_utc"]),
        )
