# Rev 1.0.0
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from ..models.entities import ProjectMember
from ..utils.clock import to_iso
from .base import SQLiteRepository, new_id

_COLUMNS = "id, project_id, user_id, permission, added_at_utc, added_by"


class SQLiteMemberRepository(SQLiteRepository):
    """
    project_members access: by project, by user, and the unique (project, user) pair.
    """

    def add_member(
        self,
        *,
        project_id: str,
        user_id: str,
        permission: str,
        added_by: str,
        now: datetime,
    ) -> str:
        mid = new_id()
        self._execute(
            f"INSERT INTO project_members({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (mid, project_id, user_id, permission, to_iso(now), added_by),
        )
        return mid

    def get_membership(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        row = self._fetch_one(
            f"SELECT {_COLUMNS} FROM project_members WHERE project_id = ? AND user_id = ?",
            (project_id, user_id),
        )
        return ProjectMember.from_row(row) if row else None

    def list_members(self, project_id: str) -> List[ProjectMember]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM project_members WHERE project_id = ? ORDER BY added_at_utc, id",
            (project_id,),
        )
        return [ProjectMember.from_row(r) for r in rows]

    def list_memberships_for_user(self, user_id: str) -> List[ProjectMember]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM project_members WHERE user_id = ? ORDER BY added_at_utc, id",
            (user_id,),
        )
        return [ProjectMember.from_row(r) for r in rows]

    def set_permission(self, member_id: str, permission: str) -> bool:
        return self._execute(
            "UPDATE project_members SET permission = ? WHERE id = ?", (permission, member_id)
        ) > 0

    def delete_member(self, member_id: str) -> bool:
        return self._execute("DELETE FROM project_members WHERE id = ?", (member_id,)) > 0

    def delete_members_for_project(self, project_id: str) -> int:
        return self._execute("DELETE FROM project_members WHERE project_id = ?", (project_id,))
