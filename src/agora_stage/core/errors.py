"""Domain error taxonomy shared by the service layer and the API.

Services raise these exceptions; the handlers registered in ``main`` render
them as ``{"message": ...}`` bodies with the carried HTTP status.
"""

from __future__ import annotations


class AgoraError(Exception):
    """Base class for every user-visible failure."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidArgumentError(AgoraError):
    """Malformed, missing or out-of-range input."""

    status_code = 400


class AuthenticationError(AgoraError):
    """Credentials did not match a known account."""

    status_code = 401


class NotFoundError(AgoraError):
    """A referenced entity does not exist."""

    status_code = 404


class FailedPreconditionError(AgoraError):
    """A business rule rejected the action.

    Examples are an insufficient balance, an inactive community, an ended poll
    or a repeated vote.
    """

    status_code = 400


class ConflictError(AgoraError):
    """A uniqueness rule was violated."""

    status_code = 409


class ForbiddenError(AgoraError):
    """The acting user may not perform the action."""

    status_code = 403


class InternalError(AgoraError):
    """Storage or unexpected failure."""

    status_code = 500
