# Rev 1.0.0

"""Step/subtask cascade engine (Rev 1.0.0)

Reacts to subtask events inside the caller's transaction:
- step becomes complete   → unlock the step at order + 1 (only that one)
- step becomes incomplete → uncomplete + lock every step with a higher order
Also keeps sibling sort_order dense after deletions.

A step with no subtasks is never complete.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from ..models.entities import Step


log = logging.getLogger(__name__)


@dataclass
class CascadeResult:
    step_id: str
    is_completed: bool
    unlocked_step_ids: List[str] = field(default_factory=list)
    locked_step_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "step_id": self.step_id,
            "is_completed": self.is_completed,
            "unlocked_step_ids": list(self.unlocked_step_ids),
            "locked_step_ids": list(self.locked_step_ids),
        }


def all_complete(states: Iterable[bool]) -> bool:
    """True when there is at least one subtask and every one is completed."""
    seen = False
    for done in states:
        seen = True
        if not done:
            return False
    return seen


class CascadeEngine:
    def __init__(self, steps_repo, subtasks_repo):
        self._steps = steps_repo
        self._subs = subtasks_repo

    # ---- completion ----
    def recompute_step(
        self,
        step_id: str,
        *,
        now: datetime,
        changed_subtask_id: Optional[str] = None,
        changed_value: Optional[bool] = None,
    ) -> Optional[CascadeResult]:
        """Re-evaluate one step after a subtask event.

        `changed_subtask_id`/`changed_value` carry the post-mutation completion of
        the subtask just touched, which wins over whatever the store returns.
        Returns None when the step's completion did not change.
        """
        step = self._steps.get_step(step_id)
        if step is None:
            return None

        states = [
            changed_value if (changed_subtask_id is not None and s.id == changed_subtask_id) else s.is_completed
            for s in self._subs.list_subtasks(step_id)
        ]
        complete = all_complete(states)
        if complete == step.is_completed:
            return None

        if complete:
            return self._complete(step, now)
        return self._regress(step, now)

    def _complete(self, step: Step, now: datetime) -> CascadeResult:
        self._steps.set_completed(step.id, True, now=now)
        result = CascadeResult(step_id=step.id, is_completed=True)

        nxt = self._steps.get_step_by_order(step.project_id, step.order + 1)
        if nxt is not None and not nxt.is_unlocked:
            self._steps.set_unlocked(nxt.id, True, now=now)
            result.unlocked_step_ids.append(nxt.id)

        log.info("Step %s completed (order %d); unlocked %s", step.id, step.order, result.unlocked_step_ids or "-")
        return result

    def _regress(self, step: Step, now: datetime) -> CascadeResult:
        self._steps.set_completed(step.id, False, now=now)
        locked = self._steps.lock_after(step.project_id, step.order, now=now)
        log.info("Step %s regressed (order %d); locked %d later step(s)", step.id, step.order, len(locked))
        return CascadeResult(step_id=step.id, is_completed=False, locked_step_ids=locked)

    # ---- ordering ----
    def reindex_subtasks(self, step_id: str) -> int:
        subs = self._subs.list_subtasks(step_id)
        for i, sub in enumerate(subs):
            if sub.order != i:
                self._subs.set_order(sub.id, i)
        return len(subs)

    def reindex_steps(self, project_id: str, *, now: datetime) -> List[str]:
        """Densify step order, then close holes in the unlock chain.

        Returns ids of steps unlocked by the repair.
        """
        steps = self._steps.list_steps(project_id)
        for i, step in enumerate(steps):
            if step.order != i:
                self._steps.set_order(step.id, i)
                step.order = i

        unlocked: List[str] = []
        prev: Optional[Step] = None
        for step in steps:
            should_unlock = prev is None or prev.is_completed
            if should_unlock and not step.is_unlocked:
                self._steps.set_unlocked(step.id, True, now=now)
                step.is_unlocked = True
                unlocked.append(step.id)
            prev = step
        if unlocked:
            log.debug("Reindex of project %s unlocked %s", project_id, unlocked)
        return unlocked
