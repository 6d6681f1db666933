# Rev 1.0.0
from __future__ import annotations
import logging
from typing import List, Optional

from ..models.entities import Step
from ..models.errors import InvalidArgument, NotFound
from .cascade import CascadeEngine
from .context import RequestContext
from .permission_service import PermissionService


log = logging.getLogger(__name__)

_UNSET = object()


def _clean_title(title: str) -> str:
    if title is None or not str(title).strip():
        raise InvalidArgument("Title is required")
    return str(title).strip()


class StepService:
    """
    Step CRUD. Completion/unlock flags are owned by CascadeEngine and are not
    writable from here.
    """

    def __init__(self, db, steps_repo, subtasks_repo, permissions: PermissionService, engine: CascadeEngine):
        self._db = db
        self._steps = steps_repo
        self._subs = subtasks_repo
        self._perm = permissions
        self._engine = engine

    # ---- commands ----
    def create(self, ctx: RequestContext, project_id: str, title: str, description: Optional[str] = None) -> str:
        with self._db.transaction():
            self._perm.require_modify(ctx, project_id, action="create steps")
            title = _clean_title(title)
            order = self._steps.count_steps(project_id)
            if order == 0:
                unlocked = True
            else:
                prev = self._steps.get_step_by_order(project_id, order - 1)
                unlocked = bool(prev and prev.is_completed)
            step_id = self._steps.create_step(
                project_id=project_id,
                title=title,
                description=description or None,
                order=order,
                is_unlocked=unlocked,
                now=ctx.now(),
            )
        log.info("Step %s created in project %s at order %d (unlocked=%s)", step_id, project_id, order, unlocked)
        return step_id

    def update(self, ctx: RequestContext, step_id: str, *, title=_UNSET, description=_UNSET) -> str:
        ctx.require_user()
        with self._db.transaction():
            step = self._require_step(step_id)
            self._perm.require_modify(ctx, step.project_id, action="update steps")
            fields = {}
            if title is not _UNSET:
                fields["title"] = _clean_title(title)
            if description is not _UNSET:
                fields["description"] = description or None
            if fields:
                self._steps.update_step_fields(step_id, fields, now=ctx.now())
        return step_id

    def remove(self, ctx: RequestContext, step_id: str) -> None:
        ctx.require_user()
        with self._db.transaction():
            step = self._require_step(step_id)
            self._perm.require_modify(ctx, step.project_id, action="remove steps")
            removed_subs = self._subs.delete_subtasks_for_step(step_id)
            self._steps.delete_step(step_id)
            self._engine.reindex_steps(step.project_id, now=ctx.now())
        log.info("Step %s removed from project %s (%d subtask(s))", step_id, step.project_id, removed_subs)

    # ---- queries ----
    def get(self, ctx: RequestContext, step_id: str) -> Optional[Step]:
        step = self._steps.get_step(step_id)
        if step is None or not self._perm.can_read(ctx, step.project_id):
            return None
        return step

    def list_by_project(self, ctx: RequestContext, project_id: str) -> List[Step]:
        if not self._perm.can_read(ctx, project_id):
            return []
        return self._steps.list_steps(project_id)

    # ---- internals ----
    def _require_step(self, step_id: str) -> Step:
        step = self._steps.get_step(step_id)
        if step is None:
            raise NotFound("Step not found")
        return step
