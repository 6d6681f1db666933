# Rev 1.0.0
from __future__ import annotations
import logging

from PySide6.QtCore import QObject, Signal

from ..models.errors import StepladderError
from ..services.context import RequestContext


log = logging.getLogger(__name__)


class InvitationViewModel(QObject):
    """
    VM behind an invitation link.
    Emits:
      - detailsLoaded(details: dict)   {} for an unknown token
      - accepted(project_id: str)
      - declined()
      - errorRaised(message: str)
    """

    detailsLoaded = Signal(dict)
    accepted = Signal(str)
    declined = Signal()
    errorRaised = Signal(str)

    def __init__(self, invitation_service, ctx: RequestContext):
        super().__init__()
        self._invites = invitation_service
        self._ctx = ctx

    def load(self, token: str) -> None:
        details = self._invites.get_details(self._ctx, token)
        self.detailsLoaded.emit(details.to_dict() if details else {})

    def accept(self, token: str) -> None:
        try:
            project_id = self._invites.accept(self._ctx, token)
        except StepladderError as exc:
            log.info("Accept failed: %s", exc.message)
            self.errorRaised.emit(exc.message)
            self.load(token)
            return
        self.accepted.emit(project_id)

    def decline(self, token: str) -> None:
        try:
            self._invites.decline(self._ctx, token)
        except StepladderError as exc:
            self.errorRaised.emit(exc.message)
            return
        self.declined.emit()
