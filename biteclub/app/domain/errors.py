"""Typed errors raised by the ordering core.

Every error carries a stable ``code`` for clients, a human readable message
and an optional ``hint``. The HTTP layer maps each class to a status code via
:attr:`BiteClubError.status_code`.
"""

from __future__ import annotations

from typing import Any


class BiteClubError(Exception):
    """Base class for domain errors."""

    status_code = 400

    def __init__(
        self,
        code: str,
        message: str,
        *,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.hint = hint
        self.details = details


class ValidationError(BiteClubError):
    """Malformed cart, amount or configuration. Raised before any write."""

    status_code = 422


class InsufficientCredit(BiteClubError):
    """The student's balance does not cover the order."""

    status_code = 402

    def __init__(self, balance: Any, required: Any) -> None:
        super().__init__(
            "INSUFFICIENT_CREDIT",
            "Insufficient credit balance",
            hint="Add credits and try again",
            details={"balance": str(balance), "required": str(required)},
        )


class InvalidTransition(BiteClubError):
    """A lifecycle action is not allowed from the order's current status."""

    status_code = 409

    def __init__(self, status: str, action: str) -> None:
        super().__init__(
            "INVALID_TRANSITION",
            f"Cannot {action} an order that is {status}",
            details={"status": status, "action": action},
        )


class ConcurrencyConflict(BiteClubError):
    """The order changed between read and write."""

    status_code = 409

    def __init__(self, message: str = "Order was modified concurrently") -> None:
        super().__init__(
            "CONCURRENCY_CONFLICT", message, hint="Reload the order and retry once"
        )


class PersistenceFailure(BiteClubError):
    """The store was unavailable or the transaction aborted."""

    status_code = 503

    def __init__(self, message: str = "Storage unavailable") -> None:
        super().__init__("PERSISTENCE_FAILURE", message, hint="Retry later")


class NotFound(BiteClubError):
    status_code = 404


class Forbidden(BiteClubError):
    status_code = 403


__all__ = [
    "BiteClubError",
    "ValidationError",
    "InsufficientCredit",
    "InvalidTransition",
    "ConcurrencyConflict",
    "PersistenceFailure",
    "NotFound",
    "Forbidden",
]
