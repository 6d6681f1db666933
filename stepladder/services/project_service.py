# Rev 1.0.0
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from ..models.entities import Project
from ..models.errors import InvalidArgument
from ..models.types import Role
from .context import RequestContext
from .permission_service import PermissionService


log = logging.getLogger(__name__)

_UNSET = object()


def compute_progress(total: int, completed: int) -> int:
    """Whole percent of completed steps, rounded half up; 0 for an empty project."""
    if total <= 0:
        return 0
    return int(math.floor(completed * 100 / total + 0.5))


@dataclass
class ProjectSummary:
    project: Project
    role: Role
    total_steps: int
    completed_steps: int
    progress: int

    def to_dict(self) -> dict:
        d = self.project.to_dict()
        d.update(
            {
                "permission": self.role.value,
                "total_steps": self.total_steps,
                "completed_steps": self.completed_steps,
                "progress": self.progress,
            }
        )
        return d


def _required(value, label: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgument(f"{label} is required")
    return str(value).strip()


class ProjectService:
    """
    Project CRUD and read-side aggregation (step counts + progress).
    Reads never raise for missing access; they return [] / None.
    """

    def __init__(self, db, projects_repo, steps_repo, subtasks_repo, members_repo, invitations_repo,
                 permissions: PermissionService):
        self._db = db
        self._projects = projects_repo
        self._steps = steps_repo
        self._subs = subtasks_repo
        self._members = members_repo
        self._invites = invitations_repo
        self._perm = permissions

    # ---- commands ----
    def create(
        self,
        ctx: RequestContext,
        name: str,
        color: str,
        description: Optional[str] = None,
        link: Optional[str] = None,
    ) -> str:
        user_id = ctx.require_user()
        name = _required(name, "Name")
        color = _required(color, "Color")
        with self._db.transaction():
            pid = self._projects.create_project(
                name=name,
                color=color,
                owner_user_id=user_id,
                description=description or None,
                link=link or None,
                now=ctx.now(),
            )
        log.info("Project %s created by %s", pid, user_id)
        return pid

    def update(self, ctx: RequestContext, project_id: str, *, name=_UNSET, description=_UNSET,
               link=_UNSET, color=_UNSET) -> str:
        with self._db.transaction():
            self._perm.require_modify(ctx, project_id, action="update this project")
            fields = {}
            if name is not _UNSET:
                fields["name"] = _required(name, "Name")
            if color is not _UNSET:
                fields["color"] = _required(color, "Color")
            if description is not _UNSET:
                fields["description"] = description or None
            if link is not _UNSET:
                fields["link"] = link or None
            if fields:
                self._projects.update_project_fields(project_id, fields, now=ctx.now())
        return project_id

    def remove(self, ctx: RequestContext, project_id: str) -> None:
        with self._db.transaction():
            self._perm.require_owner(ctx, project_id, action="delete this project")
            self._subs.delete_subtasks_for_project(project_id)
            steps = self._steps.delete_steps_for_project(project_id)
            self._members.delete_members_for_project(project_id)
            self._invites.delete_for_project(project_id)
            self._projects.delete_project(project_id)
        log.info("Project %s deleted by %s (%d step(s))", project_id, ctx.user_id, steps)

    # ---- queries ----
    def get(self, ctx: RequestContext, project_id: str) -> Optional[ProjectSummary]:
        role = self._perm.resolve_role(ctx.user_id, project_id)
        if not role.can_read:
            return None
        project = self._projects.get_project(project_id)
        if project is None:
            return None
        return self._summarize(project, role)

    def list_owned(self, ctx: RequestContext) -> List[ProjectSummary]:
        if not ctx.user_id:
            return []
        return [self._summarize(p, Role.OWNER) for p in self._projects.list_projects_by_owner(ctx.user_id)]

    def list_shared(self, ctx: RequestContext) -> List[ProjectSummary]:
        if not ctx.user_id:
            return []
        out: List[ProjectSummary] = []
        for membership in self._members.list_memberships_for_user(ctx.user_id):
            project = self._projects.get_project(membership.project_id)
            if project is None:
                continue
            out.append(self._summarize(project, Role.from_permission(membership.permission)))
        return out

    # ---- internals ----
    def _summarize(self, project: Project, role: Role) -> ProjectSummary:
        total = self._steps.count_steps(project.id)
        completed = self._steps.count_completed_steps(project.id)
        return ProjectSummary(
            project=project,
            role=role,
            total_steps=total,
            completed_steps=completed,
            progress=compute_progress(total, completed),
        )
