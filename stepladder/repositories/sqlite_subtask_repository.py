# Rev 1.0.0
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ..models.entities import Subtask
from ..utils.clock import to_iso
from .base import SQLiteRepository, new_id

_COLUMNS = "id, step_id, title, is_completed, sort_order"


class SQLiteSubtaskRepository(SQLiteRepository):
    """Subtask CRUD + ordered listing per step."""

    # --------------- CRUD ---------------
    def create_subtask(self, *, step_id: str, title: str, order: int, now: datetime) -> str:
        sub_id = new_id()
        ts = to_iso(now)
        self._execute(
            """
            INSERT INTO subtasks(id, step_id, title, is_completed, sort_order, created_at_utc, updated_at_utc)
            VALUES (?, ?, ?, 0, ?, ?, ?)
            """,
            (sub_id, step_id, title, order, ts, ts),
        )
        return sub_id

    def get_subtask(self, subtask_id: str) -> Optional[Subtask]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM subtasks WHERE id = ?", (subtask_id,))
        return Subtask.from_row(row) if row else None

    def update_subtask_fields(self, subtask_id: str, fields: Dict[str, Any], *, now: datetime) -> bool:
        sets: List[str] = []
        params: List[Any] = []
        if "title" in fields:
            sets.append("title = ?")
            params.append(fields["title"])
        if "is_completed" in fields:
            sets.append("is_completed = ?")
            params.append(int(bool(fields["is_completed"])))
        if not sets:
            return False
        sets.append("updated_at_utc = ?")
        params.extend([to_iso(now), subtask_id])
        return self._execute(f"UPDATE subtasks SET {', '.join(sets)} WHERE id = ?", tuple(params)) > 0

    def set_completed(self, subtask_id: str, is_completed: bool, *, now: datetime) -> bool:
        return self.update_subtask_fields(subtask_id, {"is_completed": is_completed}, now=now)

    def set_order(self, subtask_id: str, order: int) -> None:
        self._execute("UPDATE subtasks SET sort_order = ? WHERE id = ?", (order, subtask_id))

    def delete_subtask(self, subtask_id: str) -> bool:
        return self._execute("DELETE FROM subtasks WHERE id = ?", (subtask_id,)) > 0

    def delete_subtasks_for_step(self, step_id: str) -> int:
        return self._execute("DELETE FROM subtasks WHERE step_id = ?", (step_id,))

    def delete_subtasks_for_project(self, project_id: str) -> int:
        return self._execute(
            "DELETE FROM subtasks WHERE step_id IN (SELECT id FROM steps WHERE project_id = ?)",
            (project_id,),
        )

    # --------------- lists/counts ---------------
    def list_subtasks(self, step_id: str) -> List[Subtask]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM subtasks WHERE step_id = ? ORDER BY sort_order ASC, created_at_utc ASC",
            (step_id,),
        )
        return [Subtask.from_row(r) for r in rows]

    def list_subtasks_for_steps(self, step_ids: Iterable[str]) -> List[Subtask]:
        ids = list(step_ids)
        if not ids:
            return []
        placeholders = ", ".join("?" * len(ids))
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM subtasks WHERE step_id IN ({placeholders}) ORDER BY step_id, sort_order",
            tuple(ids),
        )
        return [Subtask.from_row(r) for r in rows]

    def count_subtasks(self, step_id: str) -> int:
        row = self._fetch_one("SELECT COUNT(1) FROM subtasks WHERE step_id = ?", (step_id,))
        return int(row[0]) if row and row[0] is not None else 0
