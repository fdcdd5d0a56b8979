"""
Error taxonomy for the tournament core.

Services raise these; the web layer translates them into the response
envelope ``{"success": false, "message": ..., "error": <code>}`` using
``status_code``. None of them should ever escape a request unhandled.
"""

from __future__ import annotations

from typing import Any, Optional


class EthosError(Exception):
    """Base class for all recoverable tournament errors."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "message": self.message,
            "error": self.code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NotFound(EthosError):
    """Referenced entity does not exist."""

    status_code = 404
    default_code = "NOT_FOUND"


class Forbidden(EthosError):
    """Role or ownership check failed."""

    status_code = 403
    default_code = "FORBIDDEN"


class Conflict(EthosError):
    """Duplicate assignment, scheduling clash, repeated pairing or bye."""

    status_code = 409
    default_code = "CONFLICT"


class ValidationFailed(EthosError):
    """Bad status value, out-of-range score, malformed input."""

    status_code = 400
    default_code = "VALIDATION_FAILED"


class PreconditionFailed(EthosError):
    """
    The request is well-formed but the current state forbids it.

    Examples: scoring outside the allowed window, modifying a submitted
    score, removing the last judge, completing with missing scores.
    """

    status_code = 400
    default_code = "PRECONDITION_FAILED"
