"""Verification flows run by the community onboarding wizard.

Two flows exist, chosen by community type:

- Single-creator: issue an OTP to the community's domain email and confirm
  it. The server activates the community on a match.
- Multi-user: send one OTP-bearing invite per authorized email. Approvals
  arrive later, and the server activates the community once enough invites
  are approved.

Invites are issued strictly one after another. The batch stops at the first
failure, so the outcome is always "the first N were sent". Every email gets a
recorded outcome and only failed or skipped emails are retried.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum

from newsroom_admin.core.errors import (
    InvalidOtpError,
    NetworkOrServerError,
    UnauthorizedError,
    WizardStateError,
)
from newsroom_admin.core.settings import settings
from newsroom_admin.schemas.community import CommunityRecord, normalize_email
from newsroom_admin.schemas.user import DirectoryUser
from newsroom_admin.services.console_api import ConsoleApiClient, InviteReceipt, OtpIssue

# Configure logger for this module
logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")
HTTP_BAD_REQUEST = 400


def sanitize_otp(raw: str, length: int | None = None) -> str:
    """Keep ASCII digits only and cap the result at the OTP length."""
    limit = length or settings.otp_length
    return _NON_DIGITS.sub("", raw or "")[:limit]


def is_otp_complete(otp: str, length: int | None = None) -> bool:
    """Return True when the value is exactly one full OTP."""
    limit = length or settings.otp_length
    return len(otp) == limit and sanitize_otp(otp, limit) == otp


def _require_community_id(community_id: str | None) -> str:
    if not community_id:
        raise WizardStateError("No community has been created yet")
    return community_id


class SingleCreatorVerification:
    """Domain-email OTP issuance and confirmation."""

    def __init__(self, api: ConsoleApiClient) -> None:
        self.api = api

    async def request_otp(self, community_id: str | None, domain_email: str) -> OtpIssue:
        """Ask the server to (re)issue the domain-email OTP.

        Re-issuing invalidates the previous code server-side.
        """
        community_id = _require_community_id(community_id)
        issue = await self.api.send_email_verification(community_id, domain_email)
        logger.info("OTP sent to %s for community %s", domain_email, community_id)
        return issue

    async def confirm(self, community_id: str | None, otp: str) -> CommunityRecord:
        """Confirm a code; the returned record is Active on success.

        Raises:
            InvalidOtpError: If the code is malformed or the server rejects it.
        """
        community_id = _require_community_id(community_id)
        if not is_otp_complete(otp):
            raise InvalidOtpError(f"OTP must be exactly {settings.otp_length} digits")
        try:
            return await self.api.confirm_domain_email(community_id, otp)
        except NetworkOrServerError as exc:
            if exc.status_code == HTTP_BAD_REQUEST:
                raise InvalidOtpError(exc.message) from exc
            raise


class InviteStatus(StrEnum):
    """Per-email outcome of an invite batch."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class InviteOutcome:
    """What happened to one authorized email."""

    email: str
    status: InviteStatus
    otp: str | None = None
    error: str | None = None


@dataclass
class InviteBatchResult:
    """Structured result of issuing invites to every authorized email."""

    community_id: str
    outcomes: list[InviteOutcome] = field(default_factory=list)

    @property
    def sent_emails(self) -> list[str]:
        return [o.email for o in self.outcomes if o.status == InviteStatus.SENT]

    @property
    def pending_emails(self) -> list[str]:
        """Emails that still need an invite (failed or never attempted)."""
        return [o.email for o in self.outcomes if o.status != InviteStatus.SENT]

    @property
    def all_sent(self) -> bool:
        return bool(self.outcomes) and not self.pending_emails

    def outcome_for(self, email: str) -> InviteOutcome | None:
        email = normalize_email(email)
        for outcome in self.outcomes:
            if outcome.email == email:
                return outcome
        return None

    def merge(self, other: InviteBatchResult) -> InviteBatchResult:
        """Return a copy with `other`'s outcomes replacing matching emails."""
        updates = {o.email: o for o in other.outcomes}
        merged = [updates.pop(o.email, o) for o in self.outcomes]
        merged.extend(updates.values())
        return replace(self, outcomes=merged)


@dataclass(frozen=True)
class ApproverRef:
    """How an approval identifies the approver on the wire."""

    user_id: str | None = None
    email: str | None = None


def resolve_approver(email: str, directory: Iterable[DirectoryUser]) -> ApproverRef:
    """Prefer a known user id for the invited email, else fall back to the email.

    The directory may have been fetched before the invite was issued, so a
    missing entry is expected and not an error.
    """
    target = normalize_email(email)
    for user in directory:
        if user.id and user.email and normalize_email(user.email) == target:
            return ApproverRef(user_id=user.id)
    return ApproverRef(email=target)


class AuthorizedInviteFlow:
    """Multi-user authorized-person invite and approval protocol."""

    def __init__(self, api: ConsoleApiClient) -> None:
        self.api = api

    async def _invite_one(self, community_id: str, email: str) -> InviteOutcome:
        try:
            receipt: InviteReceipt = await self.api.invite_authorized_person(community_id, email)
        except UnauthorizedError:
            raise
        except NetworkOrServerError as exc:
            logger.warning("Invite to %s for community %s failed: %s", email, community_id, exc)
            return InviteOutcome(email=email, status=InviteStatus.FAILED, error=exc.message)
        return InviteOutcome(email=email, status=InviteStatus.SENT, otp=receipt.otp)

    async def invite_all(self, community_id: str | None, emails: Sequence[str]) -> InviteBatchResult:
        """Invite each email in order, stopping at the first failure.

        Emails after a failure are recorded as skipped. Invites already sent
        are never rolled back.
        """
        community_id = _require_community_id(community_id)
        result = InviteBatchResult(community_id=community_id)
        stopped = False
        for email in emails:
            email = normalize_email(email)
            if stopped:
                result.outcomes.append(InviteOutcome(email=email, status=InviteStatus.SKIPPED))
                continue
            outcome = await self._invite_one(community_id, email)
            result.outcomes.append(outcome)
            stopped = outcome.status == InviteStatus.FAILED
        return result

    async def retry_failed(self, previous: InviteBatchResult) -> InviteBatchResult:
        """Re-run only the failed and skipped emails of an earlier batch."""
        retried = await self.invite_all(previous.community_id, previous.pending_emails)
        return previous.merge(retried)

    async def resend(self, community_id: str | None, email: str) -> InviteOutcome:
        """Re-issue one invite; other invites keep their state."""
        community_id = _require_community_id(community_id)
        return await self._invite_one(community_id, normalize_email(email))

    async def approve(
        self,
        community_id: str | None,
        email: str,
        otp: str,
        directory: Iterable[DirectoryUser] = (),
    ) -> CommunityRecord:
        """Approve the invite sent to `email` with its OTP.

        Raises:
            InvalidOtpError: If the code is malformed or the server rejects it.
        """
        community_id = _require_community_id(community_id)
        if not is_otp_complete(otp):
            raise InvalidOtpError(f"OTP must be exactly {settings.otp_length} digits")
        approver = resolve_approver(email, directory)
        try:
            return await self.api.approve_authorized_invite(
                community_id,
                otp,
                user_id=approver.user_id,
                email=approver.email,
            )
        except NetworkOrServerError as exc:
            if exc.status_code == HTTP_BAD_REQUEST:
                raise InvalidOtpError(exc.message) from exc
            raise
