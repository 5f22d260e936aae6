"""Explicit acting context passed into every operation.

An admin may act on behalf of a student or restaurant. Instead of swapping a
global "current user", callers build an :class:`ActingContext` carrying both
the authenticated actor and the subject it acts for.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import Forbidden


class Role(str, Enum):
    STUDENT = "student"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


@dataclass(frozen=True)
class ActingContext:
    """Who is calling and on whose behalf."""

    actor_id: str
    role: Role
    on_behalf_of: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def subject_id(self) -> str:
        """Identifier the operation is performed for."""

        return self.on_behalf_of or self.actor_id

    def require_student(self, student_id: str) -> None:
        """Allow the student themself or an admin acting for them."""

        if self.is_admin and self.on_behalf_of in (None, student_id):
            return
        if self.role is Role.STUDENT and self.actor_id == student_id:
            return
        raise Forbidden("FORBIDDEN", "Not allowed to act for this student")

    def require_restaurant(self, restaurant_id: str) -> None:
        """Allow the restaurant itself or an admin acting for it."""

        if self.is_admin and self.on_behalf_of in (None, restaurant_id):
            return
        if self.role is Role.RESTAURANT and self.actor_id == restaurant_id:
            return
        raise Forbidden("FORBIDDEN", "Not allowed to act for this restaurant")

    def require_admin(self) -> None:
        if not self.is_admin:
            raise Forbidden("ADMIN_ONLY", "Admin role required")

    def describe(self) -> str:
        """Return ``actor`` or ``actor->subject`` for audit descriptions."""

        if self.on_behalf_of and self.on_behalf_of != self.actor_id:
            return f"{self.actor_id}->{self.on_behalf_of}"
        return self.actor_id


def system_context() -> ActingContext:
    """Context used by maintenance code paths."""

    return ActingContext(actor_id="system", role=Role.ADMIN)
