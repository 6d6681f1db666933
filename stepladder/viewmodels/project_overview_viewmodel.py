# Rev 1.0.0
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Optional

from PySide6.QtCore import QObject, Signal

from ..models.errors import StepladderError
from ..services.context import RequestContext


log = logging.getLogger(__name__)


class ProjectOverviewViewModel(QObject):
    """
    Emits:
      loaded({
        "project": {..., "permission", "total_steps", "completed_steps", "progress"},
        "steps": [{..., "subtasks": [...]}, ...],   # in step order
      })                                             # {} when the project is not readable
      cascadeApplied({"step_id", "is_completed", "unlocked_step_ids", "locked_step_ids"})
      errorRaised(str)
    """
    loaded = Signal(dict)
    cascadeApplied = Signal(dict)
    errorRaised = Signal(str)

    def __init__(self, project_service, step_service, subtask_service, ctx: RequestContext):
        super().__init__()
        self._projects = project_service
        self._steps = step_service
        self._subs = subtask_service
        self._ctx = ctx
        self._project_id: Optional[str] = None
        self._last: Optional[Dict[str, Any]] = None

    def load(self, project_id: str) -> None:
        self._project_id = project_id
        summary = self._projects.get(self._ctx, project_id)
        if summary is None:
            self._last = None
            self.loaded.emit({})
            return

        steps = self._steps.list_by_project(self._ctx, project_id)
        subtasks = self._subs.list_by_steps(self._ctx, [s.id for s in steps])
        by_step: Dict[str, list] = {}
        for sub in subtasks:
            by_step.setdefault(sub.step_id, []).append(sub.to_dict())

        info = {
            "project": summary.to_dict(),
            "steps": [dict(s.to_dict(), subtasks=by_step.get(s.id, [])) for s in steps],
        }
        self._last = info
        self.loaded.emit(info)

    def last(self) -> Optional[Dict[str, Any]]:
        return self._last

    # ---- commands ----
    def add_step(self, title: str, description: Optional[str] = None) -> Optional[str]:
        return self._run(lambda: self._steps.create(self._ctx, self._project_id, title, description))

    def remove_step(self, step_id: str) -> bool:
        return self._run(lambda: self._steps.remove(self._ctx, step_id) or True) is not None

    def add_subtask(self, step_id: str, title: str) -> Optional[str]:
        return self._run(lambda: self._subs.create_with_cascade(self._ctx, step_id, title), cascade=True)

    def toggle_subtask(self, subtask_id: str) -> Optional[bool]:
        return self._run(lambda: self._subs.toggle_with_cascade(self._ctx, subtask_id), cascade=True)

    def remove_subtask(self, subtask_id: str) -> bool:
        return self._run(lambda: self._subs.remove_with_cascade(self._ctx, subtask_id), cascade=True) is not None

    # ---- internals ----
    def _run(self, command: Callable[[], Any], *, cascade: bool = False) -> Any:
        if self._project_id is None:
            self.errorRaised.emit("No project loaded")
            return None
        try:
            result = command()
        except StepladderError as exc:
            log.warning("Overview command failed on project %s: %s", self._project_id, exc.message)
            self.errorRaised.emit(exc.message)
            return None
        if cascade:
            # subtask commands hand back (value, CascadeResult | None)
            result, applied = result
            if applied is not None:
                self.cascadeApplied.emit(applied.to_dict())
        self.load(self._project_id)
        return result
