# Rev 1.0.0
from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Tuple

from ..models.entities import Step, Subtask
from ..models.errors import InvalidArgument, NotFound, StepLocked
from .cascade import CascadeEngine, CascadeResult
from .context import RequestContext
from .permission_service import PermissionService


log = logging.getLogger(__name__)

Cascade = Optional[CascadeResult]


def _clean_title(title: str) -> str:
    if title is None or not str(title).strip():
        raise InvalidArgument("Title is required")
    return str(title).strip()


class SubtaskService:
    """
    Subtask commands. Every command that can change a step's completion runs the
    cascade inside the same transaction as the subtask write.

    The `*_with_cascade` forms also return the CascadeResult of that call (None
    when the step's completion did not move); the plain forms drop it.
    Subtasks of a locked step can be added, but not toggled, edited or removed.
    """

    def __init__(self, db, steps_repo, subtasks_repo, permissions: PermissionService, engine: CascadeEngine):
        self._db = db
        self._steps = steps_repo
        self._subs = subtasks_repo
        self._perm = permissions
        self._engine = engine

    # ---- commands ----
    def create(self, ctx: RequestContext, step_id: str, title: str) -> str:
        return self.create_with_cascade(ctx, step_id, title)[0]

    def create_with_cascade(self, ctx: RequestContext, step_id: str, title: str) -> Tuple[str, Cascade]:
        ctx.require_user()
        with self._db.transaction():
            step = self._steps.get_step(step_id)
            if step is None:
                raise NotFound("Step not found")
            self._perm.require_modify(ctx, step.project_id, action="create subtasks")
            title = _clean_title(title)
            order = self._subs.count_subtasks(step_id)
            sub_id = self._subs.create_subtask(step_id=step_id, title=title, order=order, now=ctx.now())
            result = self._engine.recompute_step(
                step_id, now=ctx.now(), changed_subtask_id=sub_id, changed_value=False
            )
        log.info("Subtask %s created in step %s at order %d", sub_id, step_id, order)
        return sub_id, result

    def toggle_complete(self, ctx: RequestContext, subtask_id: str) -> bool:
        return self.toggle_with_cascade(ctx, subtask_id)[0]

    def toggle_with_cascade(self, ctx: RequestContext, subtask_id: str) -> Tuple[bool, Cascade]:
        ctx.require_user()
        with self._db.transaction():
            sub, step = self._load_for_write(ctx, subtask_id, action="toggle subtasks")
            new_state = not sub.is_completed
            self._subs.set_completed(subtask_id, new_state, now=ctx.now())
            result = self._engine.recompute_step(
                step.id, now=ctx.now(), changed_subtask_id=subtask_id, changed_value=new_state
            )
        log.info("Subtask %s toggled to %s", subtask_id, "done" if new_state else "open")
        return new_state, result

    def update(self, ctx: RequestContext, subtask_id: str, title: str, is_completed: bool) -> str:
        return self.update_with_cascade(ctx, subtask_id, title, is_completed)[0]

    def update_with_cascade(self, ctx: RequestContext, subtask_id: str, title: str,
                            is_completed: bool) -> Tuple[str, Cascade]:
        ctx.require_user()
        with self._db.transaction():
            _, step = self._load_for_write(ctx, subtask_id, action="update subtasks")
            self._subs.update_subtask_fields(
                subtask_id,
                {"title": _clean_title(title), "is_completed": bool(is_completed)},
                now=ctx.now(),
            )
            result = self._engine.recompute_step(
                step.id, now=ctx.now(), changed_subtask_id=subtask_id, changed_value=bool(is_completed)
            )
        return subtask_id, result

    def remove(self, ctx: RequestContext, subtask_id: str) -> None:
        self.remove_with_cascade(ctx, subtask_id)

    def remove_with_cascade(self, ctx: RequestContext, subtask_id: str) -> Tuple[str, Cascade]:
        ctx.require_user()
        with self._db.transaction():
            _, step = self._load_for_write(ctx, subtask_id, action="remove subtasks")
            self._subs.delete_subtask(subtask_id)
            remaining = self._engine.reindex_subtasks(step.id)
            result = self._engine.recompute_step(step.id, now=ctx.now())
        log.info("Subtask %s removed from step %s (%d remaining)", subtask_id, step.id, remaining)
        return subtask_id, result

    # ---- queries ----
    def list_by_step(self, ctx: RequestContext, step_id: str) -> List[Subtask]:
        step = self._steps.get_step(step_id)
        if step is None or not self._perm.can_read(ctx, step.project_id):
            return []
        return self._subs.list_subtasks(step_id)

    def list_by_steps(self, ctx: RequestContext, step_ids: Iterable[str]) -> List[Subtask]:
        ids = list(step_ids)
        readable = {}
        for sid in ids:
            step = self._steps.get_step(sid)
            if step is None:
                return []
            if step.project_id not in readable:
                readable[step.project_id] = self._perm.can_read(ctx, step.project_id)
            if not readable[step.project_id]:
                return []
        return self._subs.list_subtasks_for_steps(ids)

    # ---- internals ----
    def _load_for_write(self, ctx: RequestContext, subtask_id: str, *, action: str) -> Tuple[Subtask, Step]:
        sub = self._subs.get_subtask(subtask_id)
        if sub is None:
            raise NotFound("Subtask not found")
        step = self._steps.get_step(sub.step_id)
        if step is None:
            raise NotFound("Step not found")
        self._perm.require_modify(ctx, step.project_id, action=action)
        if not step.is_unlocked:
            raise StepLocked()
        return sub, step
