"""
shiptrack.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) handed to services.
"""

from __future__ import annotations

from dataclasses import dataclass

from shiptrack.db.models import User, UserRole


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, rebuilt from the user row on every request.
    """

    id: int
    username: str
    role: UserRole
    scopes: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @classmethod
    def from_user(cls, user: User) -> Principal:
        # The credential hash never leaves the row.
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            scopes=frozenset(user.scopes or []),
        )


# --- Module Notes -----------------------------------------------------------
# Keep this model minimal; it is used across API, services, and the subscription channel.
