"""Error taxonomy for the admin console client.

Every failure raised by the console services derives from `ConsoleError`, so
handlers can catch one base class and surface the message to the operator.
None of these errors are fatal to the process: each leaves the wizard in the
step it was in so the operator can retry or cancel.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from newsroom_admin.services.verification import InviteBatchResult

GENERIC_FAILURE_MESSAGE = "Request failed. Please try again."


class ConsoleError(RuntimeError):
    """Base exception for console-side failures."""


class SessionInvalidError(ConsoleError):
    """Raised when no creator identity can be resolved from the cached session."""

    def __init__(self, message: str = "No creator session found. Please log in again.") -> None:
        super().__init__(message)


class DraftValidationError(ConsoleError):
    """Raised when a client-side guard blocks submission before any network call."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "Invalid input")


class InvalidOtpError(ConsoleError):
    """Raised when the server rejects an OTP (mismatch or expiry)."""

    def __init__(self, message: str = "Invalid OTP or verification failed") -> None:
        super().__init__(message)


class NetworkOrServerError(ConsoleError):
    """Raised for transport failures and non-success API responses.

    Attributes:
        status_code: HTTP status of the response, or None when no response arrived.
        message: Server supplied message when available, otherwise a generic one.
    """

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.status_code = status_code
        self.message = message or GENERIC_FAILURE_MESSAGE
        super().__init__(self.message)


class UnauthorizedError(NetworkOrServerError):
    """Raised after a 401 response has cleared the cached authentication state."""

    def __init__(self, message: str | None = None, redirect_to: str = "/login") -> None:
        super().__init__(message or "Session expired. Please log in again.", status_code=401)
        self.redirect_to = redirect_to


class PartialInviteFailureError(ConsoleError):
    """Raised when some authorized-person invites in a batch were not issued."""

    def __init__(self, result: InviteBatchResult) -> None:
        self.result = result
        failed = ", ".join(result.pending_emails)
        super().__init__(
            f"Failed to send invitations to: {failed}" if failed else "Failed to send invitations"
        )


class WizardStateError(ConsoleError):
    """Raised when an operation is not allowed in the wizard's current state."""
