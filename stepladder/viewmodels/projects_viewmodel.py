# Rev 1.0.0
# stepladder/viewmodels/projects_viewmodel.py
from __future__ import annotations
import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal

from ..models.errors import StepladderError
from ..services.context import RequestContext


log = logging.getLogger(__name__)


class ProjectsViewModel(QObject):
    """
    VM for the signed-in user's project list.
    Emits:
      - projectsReloaded(rows: list[dict])   owned first, then shared; each row
        carries permission/total_steps/completed_steps/progress
      - errorRaised(message: str)
    """

    projectsReloaded = Signal(list)
    errorRaised = Signal(str)

    def __init__(self, project_service, ctx: RequestContext):
        super().__init__()
        self._projects = project_service
        self._ctx = ctx

    # ---- queries ----
    def reload(self) -> None:
        owned = [s.to_dict() for s in self._projects.list_owned(self._ctx)]
        shared = [s.to_dict() for s in self._projects.list_shared(self._ctx)]
        self.projectsReloaded.emit(owned + shared)

    # ---- commands ----
    def create_project(self, name: str, color: str, description: Optional[str] = None,
                       link: Optional[str] = None) -> Optional[str]:
        try:
            pid = self._projects.create(self._ctx, name, color, description=description, link=link)
        except StepladderError as exc:
            self._fail(exc)
            return None
        self.reload()
        return pid

    def remove_project(self, project_id: str) -> bool:
        try:
            self._projects.remove(self._ctx, project_id)
        except StepladderError as exc:
            self._fail(exc)
            return False
        self.reload()
        return True

    def _fail(self, exc: StepladderError) -> None:
        log.warning("Projects command failed: %s", exc.message)
        self.errorRaised.emit(exc.message)
