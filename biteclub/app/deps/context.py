"""Dependency helpers for resolving the acting context."""

from fastapi import Header

from ..domain import ActingContext, Forbidden, Role


def get_acting_context(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
    x_on_behalf_of: str | None = Header(default=None),
) -> ActingContext:
    """Build an :class:`ActingContext` from request headers.

    Args:
        x_actor_id: Authenticated caller id from ``X-Actor-Id``.
        x_actor_role: ``student``, ``restaurant`` or ``admin``.
        x_on_behalf_of: Subject an admin acts for, from ``X-On-Behalf-Of``.

    Raises:
        Forbidden: If the headers are missing or a non-admin tries to act on
            behalf of someone else.
    """
    # authentication happens upstream; these headers are set by the gateway
    if not x_actor_id or not x_actor_role:
        raise Forbidden("MISSING_ACTOR", "Missing X-Actor-Id or X-Actor-Role")
    try:
        role = Role(x_actor_role.lower())
    except ValueError as exc:
        raise Forbidden("UNKNOWN_ROLE", f"Unknown role {x_actor_role!r}") from exc
    if x_on_behalf_of and role is not Role.ADMIN and x_on_behalf_of != x_actor_id:
        raise Forbidden("IMPERSONATION_DENIED", "Only admins may act on behalf of others")
    return ActingContext(actor_id=x_actor_id, role=role, on_behalf_of=x_on_behalf_of)
