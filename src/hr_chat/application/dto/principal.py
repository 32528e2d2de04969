from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: int
    email: str | None = None
    roles: list[str] = field(default_factory=list)
    expires_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now
