# Rev 1.0.0

"""Invitation lifecycle (Rev 1.0.0)

pending → accepted | declined | expired; terminal states never change.
Expiry is observed lazily: effective_status() is the pure check, and the
service persists the flip to 'expired' whenever it notices one.
"""
from __future__ import annotations
import logging
import secrets
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import List, Optional

from ..models.entities import Invitation
from ..models.errors import AlreadyMember, AlreadyUsed, Expired, InvalidArgument, IsOwner, NotFound, Unauthorized
from ..models.types import (
    INVITATION_DECLINED,
    INVITATION_EXPIRED,
    INVITATION_PENDING,
    Role,
    is_valid_permission,
)
from ..utils.clock import to_iso
from .context import RequestContext
from .permission_service import PermissionService


log = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7
TOKEN_BYTES = 32


def is_expired(invitation: Invitation, now: datetime) -> bool:
    return invitation.expires_at < now


def effective_status(invitation: Invitation, now: datetime) -> str:
    if invitation.status == INVITATION_PENDING and is_expired(invitation, now):
        return INVITATION_EXPIRED
    return invitation.status


@dataclass
class InvitationDetails:
    project_id: str
    project_name: str
    project_color: str
    inviter_name: str
    permission: str
    expires_at: datetime
    is_expired: bool
    status: str

    def to_dict(self) -> dict:
        d = asdict(self)
        d["expires_at"] = to_iso(self.expires_at)
        return d


@dataclass
class InvitationSummary:
    id: str
    token: str
    permission: str
    status: str
    expires_at: datetime
    is_expired: bool
    accepted_by: Optional[str] = None
    accepted_at: Optional[datetime] = None


class InvitationService:
    def __init__(
        self,
        db,
        projects_repo,
        members_repo,
        invitations_repo,
        users_repo,
        permissions: PermissionService,
        *,
        ttl_days: int = DEFAULT_TTL_DAYS,
    ):
        self._db = db
        self._projects = projects_repo
        self._members = members_repo
        self._invites = invitations_repo
        self._users = users_repo
        self._perm = permissions
        self._ttl = timedelta(days=ttl_days)

    # ---- commands ----
    def create(self, ctx: RequestContext, project_id: str, permission: str) -> str:
        """Create a pending invitation and return its token (the capability handed out)."""
        with self._db.transaction():
            self._perm.require_owner(ctx, project_id, action="invite people")
            if not is_valid_permission(permission):
                raise InvalidArgument("Invalid permission. Must be 'view' or 'modify'")
            now = ctx.now()
            token = secrets.token_urlsafe(TOKEN_BYTES)
            self._invites.create_invitation(
                project_id=project_id,
                invited_by=ctx.user_id,
                permission=permission,
                token=token,
                expires_at=now + self._ttl,
                now=now,
            )
        log.info("Invitation (%s) created for project %s by %s", permission, project_id, ctx.user_id)
        return token

    def accept(self, ctx: RequestContext, token: str) -> str:
        user_id = ctx.require_user()
        expired = False
        with self._db.transaction():
            inv = self._invites.get_by_token(token)
            if inv is None:
                raise NotFound("Invitation not found")
            if inv.status != INVITATION_PENDING:
                raise AlreadyUsed()
            now = ctx.now()
            if is_expired(inv, now):
                # committed below even though the call fails
                self._invites.set_status(inv.id, INVITATION_EXPIRED)
                expired = True
            else:
                if self._members.get_membership(inv.project_id, user_id) is not None:
                    raise AlreadyMember()
                project = self._projects.get_project(inv.project_id)
                if project is not None and project.owner_user_id == user_id:
                    raise IsOwner()
                self._members.add_member(
                    project_id=inv.project_id,
                    user_id=user_id,
                    permission=inv.permission,
                    added_by=inv.invited_by,
                    now=now,
                )
                self._invites.mark_accepted(inv.id, accepted_by=user_id, now=now)
        if expired:
            log.info("Invitation %s expired on accept attempt by %s", inv.id, user_id)
            raise Expired()
        log.info("Invitation %s accepted by %s (project %s, %s)", inv.id, user_id, inv.project_id, inv.permission)
        return inv.project_id

    def decline(self, ctx: RequestContext, token: str) -> None:
        """Decline a pending invitation. No user is required; the token is the capability."""
        expired = False
        with self._db.transaction():
            inv = self._invites.get_by_token(token)
            if inv is None:
                raise NotFound("Invitation not found")
            status = effective_status(inv, ctx.now())
            if status == INVITATION_EXPIRED and inv.status == INVITATION_PENDING:
                self._invites.set_status(inv.id, INVITATION_EXPIRED)
                expired = True
            elif status != INVITATION_PENDING:
                raise AlreadyUsed()
            else:
                self._invites.set_status(inv.id, INVITATION_DECLINED)
        if expired:
            raise Expired()
        log.info("Invitation %s declined", inv.id)

    def revoke(self, ctx: RequestContext, invitation_id: str) -> None:
        ctx.require_user()
        with self._db.transaction():
            inv = self._invites.get_invitation(invitation_id)
            if inv is None:
                raise NotFound("Invitation not found")
            if self._perm.resolve_role(ctx.user_id, inv.project_id) is not Role.OWNER:
                raise Unauthorized("Unauthorized")
            self._invites.set_status(invitation_id, INVITATION_EXPIRED)
        log.info("Invitation %s revoked by %s", invitation_id, ctx.user_id)

    # ---- queries ----
    def get_details(self, ctx: RequestContext, token: str) -> Optional[InvitationDetails]:
        """Public lookup by token; None when the token or its project is unknown."""
        with self._db.transaction():
            inv = self._invites.get_by_token(token)
            if inv is None:
                return None
            project = self._projects.get_project(inv.project_id)
            if project is None:
                return None
            now = ctx.now()
            status = self._observe(inv, now)
            inviter = self._users.get_user(inv.invited_by)
            return InvitationDetails(
                project_id=project.id,
                project_name=project.name,
                project_color=project.color,
                inviter_name=inviter.display_name if inviter else "Unknown",
                permission=inv.permission,
                expires_at=inv.expires_at,
                is_expired=is_expired(inv, now),
                status=status,
            )

    def list(self, ctx: RequestContext, project_id: str) -> List[InvitationSummary]:
        if self._perm.resolve_role(ctx.user_id, project_id) is not Role.OWNER:
            return []
        with self._db.transaction():
            now = ctx.now()
            out: List[InvitationSummary] = []
            for inv in self._invites.list_for_project(project_id):
                out.append(
                    InvitationSummary(
                        id=inv.id,
                        token=inv.token,
                        permission=inv.permission,
                        status=self._observe(inv, now),
                        expires_at=inv.expires_at,
                        is_expired=is_expired(inv, now),
                        accepted_by=inv.accepted_by,
                        accepted_at=inv.accepted_at,
                    )
                )
            return out

    # ---- internals ----
    def _observe(self, inv: Invitation, now: datetime) -> str:
        status = effective_status(inv, now)
        if status != inv.status:
            self._invites.set_status(inv.id, status)
            log.debug("Invitation %s observed as %s", inv.id, status)
        return status
