# stepladder type definitions
# Rev 1.0.0

from __future__ import annotations
from enum import Enum

PERMISSIONS = ("view", "modify")

INVITATION_PENDING = "pending"
INVITATION_ACCEPTED = "accepted"
INVITATION_DECLINED = "declined"
INVITATION_EXPIRED = "expired"


class Role(Enum):
    """Resolved authorization level of a user on one project."""

    OWNER = "owner"
    MODIFY = "modify"
    VIEW = "view"
    NONE = "none"

    @property
    def can_modify(self) -> bool:
        return self in (Role.OWNER, Role.MODIFY)

    @property
    def can_read(self) -> bool:
        return self is not Role.NONE

    @classmethod
    def from_permission(cls, permission: str) -> "Role":
        if permission == "modify":
            return cls.MODIFY
        if permission == "view":
            return cls.VIEW
        return cls.NONE


def is_valid_permission(value: object) -> bool:
    return value in PERMISSIONS
