"""Community onboarding wizard.

States and transitions::

    BASIC_INFO --submit--> EMAIL_VERIFICATION   (type Single)
               \\-submit--> AUTHORIZED_INVITES   (type Multi)
    EMAIL_VERIFICATION --request_otp--> EMAIL_VERIFICATION
    EMAIL_VERIFICATION --verify (ok)--> closed, community Active
    AUTHORIZED_INVITES --send_invites (all sent)--> closed, community Pending
    AUTHORIZED_INVITES --retry or resend completes batch--> closed
    any --cancel--> closed

Submitting the basic info creates the community server-side. From then on
its type is frozen and every verification call needs that community id.
Closing, whether on success or cancel, resets the draft and refreshes the
community listing. Cancel sends nothing to the server, so a Pending community
created before the cancel stays until it is deleted or reaped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from newsroom_admin.core.errors import (
    DraftValidationError,
    InvalidOtpError,
    PartialInviteFailureError,
    WizardStateError,
)
from newsroom_admin.schemas.community import (
    CommunityRecord,
    CommunityType,
    clean_authorized_emails,
    community_field_problems,
    normalize_email,
)
from newsroom_admin.schemas.user import DirectoryUser
from newsroom_admin.services.console_api import ConsoleApiClient, OtpIssue
from newsroom_admin.services.listing import CommunityListing
from newsroom_admin.services.session import ConsoleSession
from newsroom_admin.services.verification import (
    AuthorizedInviteFlow,
    InviteBatchResult,
    InviteOutcome,
    InviteStatus,
    SingleCreatorVerification,
    is_otp_complete,
    sanitize_otp,
)

logger = logging.getLogger(__name__)


class WizardStep(IntEnum):
    BASIC_INFO = 0
    EMAIL_VERIFICATION = 1
    AUTHORIZED_INVITES = 2


def _blank_authorized_emails() -> list[str]:
    return ["", ""]


@dataclass
class WizardDraft:
    """Form state of an in-progress community creation."""

    name: str = ""
    description: str = ""
    type: CommunityType = CommunityType.SINGLE
    image: str = ""
    domain_email: str = ""
    authorized_emails: list[str] = field(default_factory=_blank_authorized_emails)
    created_community_id: str | None = None
    current_step: WizardStep = WizardStep.BASIC_INFO
    otp_input: str = ""
    generated_otp: str = ""
    invite_result: InviteBatchResult | None = None


_EDITABLE_FIELDS = frozenset({"name", "description", "type", "image", "domain_email"})


class CommunityOnboardingWizard:
    """Drives community creation and verification for one console tab."""

    def __init__(
        self,
        api: ConsoleApiClient,
        session: ConsoleSession,
        listing: CommunityListing | None = None,
    ) -> None:
        self.api = api
        self.session = session
        self.listing = listing
        self.single_flow = SingleCreatorVerification(api)
        self.invite_flow = AuthorizedInviteFlow(api)
        self.draft = WizardDraft()
        self.is_open = False
        self.last_community: CommunityRecord | None = None

    # -- lifecycle -------------------------------------------------------

    def open(self) -> None:
        self.draft = WizardDraft()
        self.is_open = True

    def reset(self) -> None:
        """Discard every draft field, whatever step was active."""
        self.draft = WizardDraft()
        self.is_open = False

    async def close(self) -> None:
        """Close the wizard and refresh the community listing."""
        self.reset()
        if self.listing is not None:
            await self.listing.refresh()

    async def cancel(self) -> None:
        """Close without any compensating request to the server."""
        if self.draft.created_community_id:
            logger.info(
                "Wizard cancelled; community %s stays Pending",
                self.draft.created_community_id,
            )
        await self.close()

    def _require_step(self, step: WizardStep) -> None:
        if not self.is_open:
            raise WizardStateError("The wizard is not open")
        if self.draft.current_step != step:
            raise WizardStateError(
                f"Not allowed in step {self.draft.current_step.name}; expected {step.name}"
            )

    def _require_created(self) -> str:
        community_id = self.draft.created_community_id
        if not community_id:
            raise WizardStateError("No community has been created yet")
        return community_id

    # -- step 0: basic info ----------------------------------------------

    def update(self, **changes: Any) -> None:
        """Edit basic-info fields; only possible before the community exists."""
        self._require_step(WizardStep.BASIC_INFO)
        if self.draft.created_community_id:
            raise WizardStateError("Community already created; its details are locked")
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise WizardStateError(f"Unknown draft field(s): {', '.join(sorted(unknown))}")
        if "type" in changes:
            try:
                changes["type"] = CommunityType(changes["type"])
            except ValueError as exc:
                raise DraftValidationError([f"Unknown community type: {changes['type']}"]) from exc
        for name, value in changes.items():
            setattr(self.draft, name, value)

    def set_authorized_email(self, index: int, email: str) -> None:
        self._require_step(WizardStep.BASIC_INFO)
        if not 0 <= index < len(self.draft.authorized_emails):
            raise WizardStateError(f"No authorized email slot {index}")
        self.draft.authorized_emails[index] = email

    def add_authorized_email(self, email: str = "") -> None:
        self._require_step(WizardStep.BASIC_INFO)
        self.draft.authorized_emails.append(email)

    def validation_problems(self) -> list[str]:
        draft = self.draft
        return community_field_problems(
            name=draft.name,
            community_type=draft.type,
            domain_email=draft.domain_email,
            authorized_persons=draft.authorized_emails,
        )

    @property
    def can_submit_basic_info(self) -> bool:
        return not self.validation_problems()

    def _creation_payload(self, creator_id: str) -> dict[str, Any]:
        draft = self.draft
        payload: dict[str, Any] = {
            "name": draft.name.strip(),
            "description": draft.description,
            "type": draft.type.value,
            "image": draft.image,
            "creatorId": creator_id,
        }
        if draft.type == CommunityType.SINGLE:
            payload["domainEmail"] = normalize_email(draft.domain_email)
        else:
            payload["authorizedPersons"] = clean_authorized_emails(draft.authorized_emails)
        return payload

    async def submit_basic_info(self) -> CommunityRecord:
        """Create the Pending community and advance to its verification step.

        Raises:
            DraftValidationError: Before any request, if the draft is invalid.
            SessionInvalidError: If no creator identity is cached.
        """
        self._require_step(WizardStep.BASIC_INFO)
        if self.draft.created_community_id:
            raise WizardStateError("Community already created")
        problems = self.validation_problems()
        if problems:
            raise DraftValidationError(problems)
        creator_id = self.session.require_creator_id()

        record = await self.api.create_community(self._creation_payload(creator_id))
        self.draft.created_community_id = record.id
        self.last_community = record
        if record.type != self.draft.type:
            logger.warning(
                "Server created community %s as %s, draft said %s",
                record.id, record.type, self.draft.type,
            )
        self.draft.current_step = (
            WizardStep.EMAIL_VERIFICATION
            if self.draft.type == CommunityType.SINGLE
            else WizardStep.AUTHORIZED_INVITES
        )
        return record

    # -- step 1: domain email OTP ----------------------------------------

    async def request_otp(self) -> OtpIssue:
        """Issue (or re-issue) the domain-email OTP."""
        self._require_step(WizardStep.EMAIL_VERIFICATION)
        community_id = self._require_created()
        issue = await self.single_flow.request_otp(
            community_id, normalize_email(self.draft.domain_email)
        )
        self.draft.generated_otp = issue.otp or ""
        return issue

    def enter_otp(self, raw: str) -> str:
        """Store the sanitized OTP input and return it."""
        self.draft.otp_input = sanitize_otp(raw)
        return self.draft.otp_input

    @property
    def can_verify(self) -> bool:
        return (
            self.draft.current_step == WizardStep.EMAIL_VERIFICATION
            and bool(self.draft.created_community_id)
            and is_otp_complete(self.draft.otp_input)
        )

    async def verify_otp(self) -> CommunityRecord:
        """Confirm the entered OTP; closes the wizard on success.

        Raises:
            InvalidOtpError: The wizard stays open so the operator can retry.
        """
        self._require_step(WizardStep.EMAIL_VERIFICATION)
        community_id = self._require_created()
        if not self.can_verify:
            raise InvalidOtpError("Enter the complete OTP before verifying")
        record = await self.single_flow.confirm(community_id, self.draft.otp_input)
        self.last_community = record
        await self.close()
        return record

    # -- step 2: authorized person invites -------------------------------

    def _invite_emails(self) -> list[str]:
        emails = clean_authorized_emails(self.draft.authorized_emails)
        problems = community_field_problems(
            name=self.draft.name,
            community_type=CommunityType.MULTI,
            domain_email=None,
            authorized_persons=emails,
        )
        if problems:
            raise DraftValidationError(problems)
        return emails

    async def _finish_batch(self, result: InviteBatchResult) -> InviteBatchResult:
        self.draft.invite_result = result
        if not result.all_sent:
            raise PartialInviteFailureError(result)
        await self.close()
        return result

    async def send_invites(self) -> InviteBatchResult:
        """Invite every authorized email, one request at a time.

        Closes the wizard when all invites are sent. Otherwise the wizard stays
        on this step with the structured result so only failures are retried.
        """
        self._require_step(WizardStep.AUTHORIZED_INVITES)
        community_id = self._require_created()
        emails = self._invite_emails()
        result = await self.invite_flow.invite_all(community_id, emails)
        return await self._finish_batch(result)

    async def retry_failed_invites(self) -> InviteBatchResult:
        self._require_step(WizardStep.AUTHORIZED_INVITES)
        self._require_created()
        previous = self.draft.invite_result
        if previous is None:
            raise WizardStateError("No invite batch to retry")
        result = await self.invite_flow.retry_failed(previous)
        return await self._finish_batch(result)

    async def resend_invite(self, email: str) -> InviteOutcome:
        """Re-issue a single invite without touching the others.

        Closes the wizard when this resend completes an earlier partial batch.
        """
        self._require_step(WizardStep.AUTHORIZED_INVITES)
        community_id = self._require_created()
        outcome = await self.invite_flow.resend(community_id, email)
        if outcome.status != InviteStatus.SENT:
            logger.warning("Resend to %s failed: %s", outcome.email, outcome.error)
        previous = self.draft.invite_result
        if previous is not None:
            update = InviteBatchResult(community_id=community_id, outcomes=[outcome])
            self.draft.invite_result = previous.merge(update)
            if self.draft.invite_result.all_sent:
                await self.close()
        return outcome


async def approve_authorized_invite(
    api: ConsoleApiClient,
    community_id: str,
    email: str,
    otp: str,
    directory: list[DirectoryUser] | None = None,
) -> CommunityRecord:
    """Approve one authorized invite outside the wizard.

    The user directory is fetched when not supplied so the approval can name
    the approver by user id; unknown emails fall back to the raw address.
    """
    if directory is None:
        directory = await api.list_users()
    return await AuthorizedInviteFlow(api).approve(community_id, email, otp, directory)
