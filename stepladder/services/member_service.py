# Rev 1.0.0
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from ..models.errors import InvalidArgument
from ..models.types import is_valid_permission
from .context import RequestContext
from .permission_service import PermissionService


log = logging.getLogger(__name__)


@dataclass
class MemberView:
    id: str
    user_id: str
    user_name: str
    user_email: Optional[str]
    permission: str
    added_at: datetime
    added_by: str


class MemberService:
    """Listing and owner-side management of project members."""

    def __init__(self, db, members_repo, users_repo, permissions: PermissionService):
        self._db = db
        self._members = members_repo
        self._users = users_repo
        self._perm = permissions

    def list_members(self, ctx: RequestContext, project_id: str) -> List[MemberView]:
        if not self._perm.can_read(ctx, project_id):
            return []
        members = self._members.list_members(project_id)
        users = self._users.get_users(m.user_id for m in members)
        out: List[MemberView] = []
        for m in members:
            user = users.get(m.user_id)
            if user is None:
                continue
            out.append(
                MemberView(
                    id=m.id,
                    user_id=m.user_id,
                    user_name=user.display_name,
                    user_email=user.email,
                    permission=m.permission,
                    added_at=m.added_at,
                    added_by=m.added_by,
                )
            )
        return out

    def check_permission(self, project_id: str, user_id: str) -> Optional[str]:
        return self._perm.check_permission(project_id, user_id)

    def remove_member(self, ctx: RequestContext, project_id: str, member_user_id: str) -> None:
        with self._db.transaction():
            self._perm.require_owner(ctx, project_id, action="remove members")
            membership = self._members.get_membership(project_id, member_user_id)
            if membership is None:
                return
            self._members.delete_member(membership.id)
        log.info("Member %s removed from project %s", member_user_id, project_id)

    def update_member_permission(self, ctx: RequestContext, project_id: str, member_user_id: str,
                                 permission: str) -> None:
        if not is_valid_permission(permission):
            raise InvalidArgument("Invalid permission. Must be 'view' or 'modify'")
        with self._db.transaction():
            self._perm.require_owner(ctx, project_id, action="update permissions")
            membership = self._members.get_membership(project_id, member_user_id)
            if membership is None:
                return
            self._members.set_permission(membership.id, permission)
        log.info("Member %s on project %s now has %s", member_user_id, project_id, permission)
