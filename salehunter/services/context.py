"""
Request-scoped context passed explicitly to services.
"""

import time
from dataclasses import dataclass
from typing import Optional

from loguru import logger


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and which request this is."""

    request_id: str = "-"
    user_id: Optional[int] = None
    role: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"

    def logger(self):
        """loguru logger bound with this request's identifiers."""
        return logger.bind(request_id=self.request_id, user_id=self.user_id)


def present(value: Optional[str]) -> bool:
    """Sparse-update test: absent, None and blank strings all mean "leave unchanged"."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def ticks() -> int:
    """Suffix for versioned image names, in 100ns units."""
    return time.time_ns() // 100
