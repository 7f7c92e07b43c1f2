"""
Session -- the operator's authenticated session as an explicit object.

Populated by ``AuthService.login``, cleared by ``logout``; passed to the
API client and the access-control checks instead of living in ambient
global state. One session per operator; not thread-shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from resale_kernel.domain.entities import User, UserRole


@dataclass
class AuthSession:
    """Bearer token plus the stored profile of the logged-in user."""

    access_token: str | None = None
    user: User | None = None
    _generation: int = field(default=0, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token) and self.user is not None

    @property
    def role(self) -> UserRole | None:
        return self.user.role if self.user else None

    @property
    def generation(self) -> int:
        """Bumped on every login/logout so stale work can detect a switch."""
        return self._generation

    def populate(self, access_token: str, user: User) -> None:
        self.access_token = access_token
        self.user = user
        self._generation += 1

    def clear(self) -> None:
        self.access_token = None
        self.user = None
        self._generation += 1

    def merge_profile(self, changes: Mapping[str, Any]) -> User | None:
        """Merge profile changes into the stored user. No-op when logged out."""
        if self.user is None:
            return None
        allowed = {k: v for k, v in changes.items() if k in ("name", "email", "avatar")}
        self.user = replace(self.user, **allowed)
        return self.user

    def auth_headers(self) -> dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}
