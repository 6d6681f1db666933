# Rev 1.0.0
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..models.errors import Unauthenticated
from ..utils.clock import utc_now


@dataclass(frozen=True)
class RequestContext:
    """Acting user and clock for one call; passed explicitly into every service operation.

    user_id is None for anonymous callers (public invitation lookups).
    """

    user_id: Optional[str] = None
    clock: Callable[[], datetime] = field(default=utc_now, compare=False, repr=False)

    def now(self) -> datetime:
        return self.clock()

    def require_user(self) -> str:
        if not self.user_id:
            raise Unauthenticated()
        return self.user_id
