"""Verification ticket store backing the community onboarding endpoints.

The store owns every OTP issued for community verification:

- one domain-email ticket per Single community; re-issuing overwrites the
  code so only the newest one is accepted
- one invite per (community, authorized email) for Multi communities; a
  resend replaces that invite's code and leaves other invites untouched

Activation rules live here as well. A Single community becomes Active on the
first successful confirmation against its own domain email; a Multi community
becomes Active once `min_authorized_persons` invites are approved.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from newsroom_admin.core.settings import settings
from newsroom_admin.db.time import as_utc, utcnow
from newsroom_admin.models import AuthorizedInvite, Community, EmailVerificationTicket, User
from newsroom_admin.schemas.community import (
    CommunityCreate,
    CommunityStatus,
    CommunityType,
    clean_authorized_emails,
    normalize_email,
)
from newsroom_admin.services.otp_delivery import OtpDispatcher, generate_otp, get_otp_dispatcher

# Configure logger for this module
logger = logging.getLogger(__name__)


class TicketStoreError(RuntimeError):
    """Base exception for rejected verification operations."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class RecordNotFoundError(TicketStoreError):
    """Raised when a community, user or invite does not exist."""

    status_code = 404


class TicketConflictError(TicketStoreError):
    """Raised when the operation conflicts with the record's current state."""

    status_code = 409


class TicketRejectedError(TicketStoreError):
    """Raised when a code or email does not match what the store expects."""


@dataclass(frozen=True)
class IssuedCode:
    """A freshly issued OTP and where it was sent."""

    email: str
    otp: str
    expires_at: datetime


def _is_expired(expires_at: datetime) -> bool:
    return as_utc(expires_at) <= utcnow()


class VerificationTicketStore:
    """Database-backed store for community OTPs and invites."""

    def __init__(self, db: Session, dispatcher: OtpDispatcher | None = None) -> None:
        self.db = db
        self.dispatcher = dispatcher or get_otp_dispatcher()

    def get_community(self, community_id: int) -> Community:
        community = self.db.get(Community, community_id)
        if community is None:
            raise RecordNotFoundError("Community not found")
        return community

    def _require_type(self, community: Community, expected: CommunityType) -> None:
        if community.type != expected:
            raise TicketRejectedError(
                f"Community is not a {expected.value} community"
            )

    def _require_pending(self, community: Community) -> None:
        if community.status == CommunityStatus.ACTIVE:
            raise TicketConflictError("Community is already active")

    def _new_expiry(self) -> tuple[datetime, datetime]:
        issued_at = utcnow()
        return issued_at, issued_at + timedelta(seconds=settings.otp_ttl_seconds)

    def create_community(self, payload: CommunityCreate) -> Community:
        """Insert a Pending community after checking its creator exists."""
        if self.db.get(User, payload.creator_id) is None:
            raise RecordNotFoundError("Creator not found")

        is_single = payload.type == CommunityType.SINGLE
        community = Community(
            name=payload.name.strip(),
            description=payload.description,
            type=payload.type.value,
            status=CommunityStatus.PENDING.value,
            image=payload.image or None,
            creator_id=payload.creator_id,
            domain_email=normalize_email(payload.domain_email or "") if is_single else None,
            authorized_persons=(
                [] if is_single else clean_authorized_emails(payload.authorized_persons or [])
            ),
        )
        self.db.add(community)
        self.db.commit()
        self.db.refresh(community)
        logger.info("Created %s community %s (%s)", community.type, community.id, community.name)
        return community

    def delete_community(self, community_id: int) -> None:
        community = self.get_community(community_id)
        self.db.delete(community)
        self.db.commit()

    def issue_email_otp(self, community_id: int, domain_email: str) -> IssuedCode:
        """Issue a new domain-email code, invalidating any earlier one."""
        community = self.get_community(community_id)
        self._require_type(community, CommunityType.SINGLE)
        self._require_pending(community)

        email = normalize_email(domain_email)
        if email != community.domain_email:
            raise TicketRejectedError("Domain email does not match the community")

        code = generate_otp()
        issued_at, expires_at = self._new_expiry()
        ticket = community.email_ticket
        if ticket is None:
            ticket = EmailVerificationTicket(community_id=community.id)
            community.email_ticket = ticket
        ticket.domain_email = email
        ticket.otp_code = code
        ticket.issued_at = issued_at
        ticket.expires_at = expires_at
        self.db.commit()

        self.dispatcher.dispatch(email, code, purpose="domain verification")
        return IssuedCode(email=email, otp=code, expires_at=expires_at)

    def confirm_email_otp(self, community_id: int, otp: str) -> Community:
        """Activate a Single community if the code matches its live ticket."""
        community = self.get_community(community_id)
        self._require_type(community, CommunityType.SINGLE)
        self._require_pending(community)

        ticket = community.email_ticket
        if ticket is None or ticket.domain_email != community.domain_email:
            raise TicketRejectedError("No OTP has been issued for this community")
        if _is_expired(ticket.expires_at):
            raise TicketRejectedError("OTP has expired")
        if not secrets.compare_digest(ticket.otp_code, otp):
            raise TicketRejectedError("Invalid OTP")

        community.email_ticket = None
        community.status = CommunityStatus.ACTIVE.value
        community.activated_at = utcnow()
        self.db.commit()
        self.db.refresh(community)
        logger.info("Community %s activated by domain email verification", community.id)
        return community

    def _find_invite(self, community: Community, email: str) -> AuthorizedInvite | None:
        for invite in community.invites:
            if invite.email == email:
                return invite
        return None

    def issue_invite(self, community_id: int, email: str) -> IssuedCode:
        """Issue or re-issue the invite for one authorized person."""
        community = self.get_community(community_id)
        self._require_type(community, CommunityType.MULTI)
        self._require_pending(community)

        email = normalize_email(email)
        if email not in community.authorized_persons:
            raise TicketRejectedError("Email is not an authorized person of this community")

        invite = self._find_invite(community, email)
        if invite is not None and invite.approved:
            raise TicketConflictError("Invite already approved")

        code = generate_otp()
        issued_at, expires_at = self._new_expiry()
        if invite is None:
            invite = AuthorizedInvite(email=email, approved=False)
            community.invites.append(invite)
        invite.otp_code = code
        invite.issued_at = issued_at
        invite.expires_at = expires_at
        self.db.commit()

        self.dispatcher.dispatch(email, code, purpose="authorized person invite")
        return IssuedCode(email=email, otp=code, expires_at=expires_at)

    def approve_invite(
        self,
        community_id: int,
        otp: str,
        *,
        user_id: int | None = None,
        email: str | None = None,
    ) -> Community:
        """Approve one invite, identified by user id or by the invited email."""
        community = self.get_community(community_id)
        self._require_type(community, CommunityType.MULTI)

        approver: User | None
        if user_id is not None:
            approver = self.db.get(User, user_id)
            if approver is None:
                raise RecordNotFoundError("User not found")
            target_email = normalize_email(approver.email)
        else:
            target_email = normalize_email(email or "")
            approver = self.db.query(User).filter(User.email == target_email).first()

        invite = self._find_invite(community, target_email)
        if invite is None:
            raise RecordNotFoundError("No invite found for this person")
        if invite.approved:
            raise TicketConflictError("Invite already approved")
        if invite.otp_code is None or _is_expired(invite.expires_at):
            raise TicketRejectedError("OTP has expired")
        if not secrets.compare_digest(invite.otp_code, otp):
            raise TicketRejectedError("Invalid OTP")

        now = utcnow()
        invite.approved = True
        invite.otp_code = None
        invite.approved_at = now
        invite.approver_user_id = approver.id if approver is not None else None

        if (
            community.status == CommunityStatus.PENDING
            and community.approved_count >= settings.min_authorized_persons
        ):
            community.status = CommunityStatus.ACTIVE.value
            community.activated_at = now
            logger.info("Community %s activated by authorized approvals", community.id)

        self.db.commit()
        self.db.refresh(community)
        return community

    def reap_pending(self, older_than: datetime) -> int:
        """Delete Pending communities created before `older_than`."""
        stale = (
            self.db.query(Community)
            .filter(
                Community.status == CommunityStatus.PENDING.value,
                Community.created_at < older_than,
            )
            .all()
        )
        for community in stale:
            self.db.delete(community)
        self.db.commit()
        return len(stale)
