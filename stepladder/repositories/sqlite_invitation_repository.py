# Rev 1.0.0
from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from ..models.entities import Invitation
from ..models.types import INVITATION_ACCEPTED, INVITATION_PENDING
from ..utils.clock import to_iso
from .base import SQLiteRepository, new_id

_COLUMNS = (
    "id, project_id, invited_by, permission, token, expires_at_utc, status, "
    "accepted_by, accepted_at_utc, created_at_utc"
)


class SQLiteInvitationRepository(SQLiteRepository):
    """Invitations by id, by unique token, and by project."""

    def create_invitation(
        self,
        *,
        project_id: str,
        invited_by: str,
        permission: str,
        token: str,
        expires_at: datetime,
        now: datetime,
    ) -> str:
        iid = new_id()
        self._execute(
            """
            INSERT INTO invitations(id, project_id, invited_by, permission, token,
                                    expires_at_utc, status, created_at_utc)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (iid, project_id, invited_by, permission, token, to_iso(expires_at), INVITATION_PENDING, to_iso(now)),
        )
        return iid

    def get_invitation(self, invitation_id: str) -> Optional[Invitation]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM invitations WHERE id = ?", (invitation_id,))
        return Invitation.from_row(row) if row else None

    def get_by_token(self, token: str) -> Optional[Invitation]:
        row = self._fetch_one(f"SELECT {_COLUMNS} FROM invitations WHERE token = ?", (token,))
        return Invitation.from_row(row) if row else None

    def list_for_project(self, project_id: str) -> List[Invitation]:
        rows = self._fetch_all(
            f"SELECT {_COLUMNS} FROM invitations WHERE project_id = ? ORDER BY created_at_utc, id",
            (project_id,),
        )
        return [Invitation.from_row(r) for r in rows]

    def set_status(self, invitation_id: str, status: str) -> bool:
        return self._execute(
            "UPDATE invitations SET status = ? WHERE id = ?", (status, invitation_id)
        ) > 0

    def mark_accepted(self, invitation_id: str, *, accepted_by: str, now: datetime) -> bool:
        return self._execute(
            """
            UPDATE invitations SET status = ?, accepted_by = ?, accepted_at_utc = ?
            WHERE id = ?
            """,
            (INVITATION_ACCEPTED, accepted_by, to_iso(now), invitation_id),
        ) > 0

    def delete_for_project(self, project_id: str) -> int:
        return self._execute("DELETE FROM invitations WHERE project_id = ?", (project_id,))
