# Rev 1.0.0

"""Permission resolver (Rev 1.0.0)
Owner → member permission → none. Mutations call require_*; queries call can_read.
"""
from __future__ import annotations
import logging
from typing import Optional

from ..models.errors import NotFound, Unauthorized
from ..models.types import Role
from .context import RequestContext


log = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, projects_repo, members_repo):
        self._projects = projects_repo
        self._members = members_repo


    def resolve_role(self, user_id: Optional[str], project_id: str) -> Role:
        if not user_id:
            return Role.NONE
        project = self._projects.get_project(project_id)
        if project is None:
            return Role.NONE
        if project.owner_user_id == user_id:
            return Role.OWNER
        membership = self._members.get_membership(project_id, user_id)
        if membership is None:
            return Role.NONE
        return Role.from_permission(membership.permission)


    def check_permission(self, project_id: str, user_id: str) -> Optional[str]:
        role = self.resolve_role(user_id, project_id)
        return None if role is Role.NONE else role.value


    def can_read(self, ctx: RequestContext, project_id: str) -> bool:
        return self.resolve_role(ctx.user_id, project_id).can_read


    def require_modify(self, ctx: RequestContext, project_id: str, *, action: str = "modify this project") -> Role:
        role = self._require_existing(ctx, project_id)
        if not role.can_modify:
            log.info("Denied %s on project %s for user %s (role=%s)", action, project_id, ctx.user_id, role.value)
            raise Unauthorized(f"Unauthorized. You need modify permission to {action}")
        return role


    def require_owner(self, ctx: RequestContext, project_id: str, *, action: str = "manage this project") -> Role:
        role = self._require_existing(ctx, project_id)
        if role is not Role.OWNER:
            log.info("Denied %s on project %s for user %s (role=%s)", action, project_id, ctx.user_id, role.value)
            raise Unauthorized(f"Unauthorized. Only the project owner can {action}")
        return role


    def _require_existing(self, ctx: RequestContext, project_id: str) -> Role:
        user_id = ctx.require_user()
        if self._projects.get_project(project_id) is None:
            raise NotFound("Project not found")
        return self.resolve_role(user_id, project_id)
