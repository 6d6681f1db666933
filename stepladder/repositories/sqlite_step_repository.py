# Rev 1.0.0
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..models.entities import Step
from ..utils.clock import to_iso
from .base import SQLiteRepository, new_id

_COLUMNS = "id, project_id, title, description, sort_order, is_completed, is_unlocked"


class SQLiteStepRepository(SQLiteRepository):
    """
    Step CRUD plus the narrow writes the cascade engine needs
    (completion flag, unlock flag, lock-after, reorder).
    """

    # --------------- CRUD ---------------
    def create_step(
        self,
        *,
        project_id: str,
        title: str,
        order: int,
        is_unlocked: bool,
        now: datetime,
        description: Optional[str] = None,
    ) -> str:
        sid = new_id()
        ts = to_iso(now)
        self._execute(
            """
            INSERT INTO steps(id, project_id, title, description, sort_order,
                              is_completed, is_unlocked, created_at_utc, updated_at_utc)
            VALUES (?, ?, ?, ?, ?, 0, ?, ?, ?)
            """,
            (sid, project_id, title, description, order, int(is_unlocked), ts, ts),
        )
        return sid

    def get_step(self, step_id: str) -> Optional[Step]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM steps WHERE id = ?", (step_id,))
        return Step.from_row(row) if row else None

    def get_step_by_order(self, project_id: str, order: int) -> Optional[Step]:
        row = self._fetch_one(
            f"SELECT {_COLUMNS} FROM steps WHERE project_id = ? AND sort_order = ?",
            (project_id, order),
        )
        return Step.from_row(row) if row else None

    def list_steps(self, project_id: str) -> List[Step]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM steps WHERE project_id = ? ORDER BY sort_order ASC, created_at_utc ASC",
            (project_id,),
        )
        return [Step.from_row(r) for r in rows]

    def update_step_fields(self, step_id: str, fields: Dict[str, Any], *, now: datetime) -> bool:
        sets: List[str] = []
        params: List[Any] = []
        for col in ("title", "description"):
            if col in fields:
                sets.append(f"{col} = ?")
                params.append(fields[col])
        if not sets:
            return False
        sets.append("updated_at_utc = ?")
        params.extend([to_iso(now), step_id])
        return self._execute(f"UPDATE steps SET {', '.join(sets)} WHERE id = ?", tuple(params)) > 0

    def delete_step(self, step_id: str) -> bool:
        return self._execute("DELETE FROM steps WHERE id = ?", (step_id,)) > 0

    def delete_steps_for_project(self, project_id: str) -> int:
        return self._execute("DELETE FROM steps WHERE project_id = ?", (project_id,))

    # --------------- cascade writes ---------------
    def set_completed(self, step_id: str, is_completed: bool, *, now: datetime) -> bool:
        return self._execute(
            "UPDATE steps SET is_completed = ?, updated_at_utc = ? WHERE id = ?",
            (int(is_completed), to_iso(now), step_id),
        ) > 0

    def set_unlocked(self, step_id: str, is_unlocked: bool, *, now: datetime) -> bool:
        return self._execute(
            "UPDATE steps SET is_unlocked = ?, updated_at_utc = ? WHERE id = ?",
            (int(is_unlocked), to_iso(now), step_id),
        ) > 0

    def lock_after(self, project_id: str, order: int, *, now: datetime) -> List[str]:
        """Uncomplete and lock every step past `order`. Returns the affected ids."""
        rows = self._fetch_all(
            "SELECT id FROM steps WHERE project_id = ? AND sort_order > ? ORDER BY sort_order",
            (project_id, order),
        )
        ids = [r["id"] for r in rows]
        if ids:
            self._execute(
                """
                UPDATE steps SET is_completed = 0, is_unlocked = 0, updated_at_utc = ?
                WHERE project_id = ? AND sort_order > ?
                """,
                (to_iso(now), project_id, order),
            )
        return ids

    def set_order(self, step_id: str, order: int) -> None:
        self._execute("UPDATE steps SET sort_order = ? WHERE id = ?", (order, step_id))

    # --------------- counts ---------------
    def count_steps(self, project_id: str) -> int:
        row = self._fetch_one("SELECT COUNT(1) FROM steps WHERE project_id = ?", (project_id,))
        return int(row[0]) if row and row[0] is not None else 0

    def count_completed_steps(self, project_id: str) -> int:
        row = self._fetch_one(
            "SELECT COUNT(1) FROM steps WHERE project_id = ? AND is_completed = 1", (project_id,)
        )
        return int(row[0]) if row and row[0] is not None else 0
