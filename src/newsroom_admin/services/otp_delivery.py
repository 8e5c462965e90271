"""OTP generation and dispatch."""

from __future__ import annotations

import logging
import secrets

from newsroom_admin.core.settings import settings

# Configure logger for this module
logger = logging.getLogger(__name__)


def generate_otp(length: int | None = None) -> str:
    """Return a zero-padded random numeric code."""
    digits = length or settings.otp_length
    return f"{secrets.randbelow(10**digits):0{digits}d}"


def mask_otp(code: str) -> str:
    """Hide all but the last two digits of a code for log output."""
    return "*" * max(0, len(code) - 2) + code[-2:]


class OtpDispatcher:
    """Delivers one-time codes to their recipients.

    The reference implementation records the dispatch in the log; deployments
    plug a mail transport in by subclassing and overriding `deliver`.
    """

    def dispatch(self, email: str, code: str, *, purpose: str) -> None:
        logger.info("Dispatching %s OTP %s to %s", purpose, mask_otp(code), email)
        self.deliver(email, code, purpose=purpose)

    def deliver(self, email: str, code: str, *, purpose: str) -> None:
        """Send the code; no-op in the reference implementation."""


_dispatcher = OtpDispatcher()


def get_otp_dispatcher() -> OtpDispatcher:
    """Return the process-wide OTP dispatcher."""
    return _dispatcher
