# Rev 1.0.0
# stepladder – SQLiteProjectRepository
from __future__ import annotations
from datetime import datetime
from typing import Any, List, Dict, Optional

from ..models.entities import Project
from ..utils.clock import to_iso
from .base import SQLiteRepository, new_id

_COLUMNS = "id, name, description, link, color, owner_user_id, created_at_utc, updated_at_utc"

# Columns a client may change after creation; owner_user_id is immutable.
_MUTABLE = ("name", "description", "link", "color")


class SQLiteProjectRepository(SQLiteRepository):
    """
    Project table access.
    Projects by owner use idx_projects_owner.
    """

    # ---------- CRUD ----------

    def create_project(
        self,
        *,
        name: str,
        color: str,
        owner_user_id: str,
        now: datetime,
        description: Optional[str] = None,
        link: Optional[str] = None,
    ) -> str:
        pid = new_id()
        ts = to_iso(now)
        self._execute(
            f"INSERT INTO projects({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (pid, name, description, link, color, owner_user_id, ts, ts),
        )
        return pid

    def get_project(self, project_id: str) -> Optional[Project]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM projects WHERE id = ?", (project_id,))
        return Project.from_row(row) if row else None

    def list_projects_by_owner(self, owner_user_id: str) -> List[Project]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM projects WHERE owner_user_id = ? ORDER BY created_at_utc ASC, id ASC",
            (owner_user_id,),
        )
        return [Project.from_row(r) for r in rows]

    def update_project_fields(self, project_id: str, fields: Dict[str, Any], *, now: datetime) -> bool:
        sets: List[str] = []
        params: List[Any] = []
        for col in _MUTABLE:
            if col in fields:
                sets.append(f"{col} = ?")
                params.append(fields[col])
        if not sets:
            return False
        sets.append("updated_at_utc = ?")
        params.append(to_iso(now))
        params.append(project_id)
        return self._execute(f"UPDATE projects SET {', '.join(sets)} WHERE id = ?", tuple(params)) > 0

    def delete_project(self, project_id: str) -> bool:
        return self._execute("DELETE FROM projects WHERE id = ?", (project_id,)) > 0
