# Rev 1.0.0
"""Error taxonomy raised by services. Messages are meant to be shown to users."""
from __future__ import annotations


class StepladderError(Exception):
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class Unauthenticated(StepladderError):
    code = "unauthenticated"

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class Unauthorized(StepladderError):
    code = "unauthorized"


class NotFound(StepladderError):
    code = "not_found"


class InvalidArgument(StepladderError):
    code = "invalid_argument"


class Conflict(StepladderError):
    code = "conflict"


class AlreadyUsed(Conflict):
    code = "already_used"

    def __init__(self, message: str = "Invitation has already been used or expired"):
        super().__init__(message)


class AlreadyMember(Conflict):
    code = "already_member"

    def __init__(self, message: str = "You are already a member of this project"):
        super().__init__(message)


class IsOwner(Conflict):
    code = "is_owner"

    def __init__(self, message: str = "You are the owner of this project"):
        super().__init__(message)


class Expired(StepladderError):
    code = "expired"

    def __init__(self, message: str = "Invitation has expired"):
        super().__init__(message)


class StepLocked(Conflict):
    code = "step_locked"

    def __init__(self, message: str = "This step is locked until the previous step is completed"):
        super().__init__(message)
