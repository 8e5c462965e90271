# src/newsroom_admin/schemas/community.py
"""Community-related Pydantic schemas.

Wire payloads use the camelCase field names of the console REST contract
(`communityId`, `domainEmail`, `authorizedPersons`, ...). The `CommunityRecord`
model is the client-side adapter: it accepts either `id` or `_id` from the
server and always exposes a single string `id`.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from newsroom_admin.core.settings import settings

EMAIL_PATTERN = re.compile(r"^[^@\s]+@([A-Za-z0-9-]+\.)+[A-Za-z]{2,}$")


class CommunityType(StrEnum):
    """Verification model of a community; fixed at creation."""

    SINGLE = "Single"
    MULTI = "Multi"


class CommunityStatus(StrEnum):
    """Lifecycle status of a community."""

    PENDING = "Pending"
    ACTIVE = "Active"


def normalize_email(value: str) -> str:
    """Trim and lower-case an email address."""
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    """Return True for syntactically plausible email addresses."""
    return bool(EMAIL_PATTERN.match(value.strip()))


def is_domain_email(value: str) -> bool:
    """Return True when the address belongs to an organisation's own domain."""
    if not is_valid_email(value):
        return False
    domain = normalize_email(value).rsplit("@", 1)[1]
    return domain not in {d.lower() for d in settings.public_mail_domains}


def require_otp_shape(value: str) -> str:
    """Raise ValueError unless the value is exactly `otp_length` digits."""
    if len(value) != settings.otp_length or not (value.isascii() and value.isdigit()):
        raise ValueError(f"OTP must be exactly {settings.otp_length} digits")
    return value


def clean_authorized_emails(emails: Iterable[str]) -> list[str]:
    """Drop blank entries, normalize, and de-duplicate while keeping order."""
    seen: dict[str, None] = {}
    for email in emails:
        if email and email.strip():
            seen.setdefault(normalize_email(email), None)
    return list(seen)


def community_field_problems(
    *,
    name: str,
    community_type: CommunityType | str,
    domain_email: str | None,
    authorized_persons: Iterable[str] | None,
) -> list[str]:
    """Return human-readable problems with a community draft, empty when valid.

    Shared by the console wizard (before any network call) and by the
    reference API (as request validation) so both sides agree on the rules.
    """
    problems: list[str] = []
    if not name or not name.strip():
        problems.append("Community name is required")

    if community_type == CommunityType.SINGLE:
        if not domain_email or not domain_email.strip():
            problems.append("Domain email is required for single-creator communities")
        elif not is_valid_email(domain_email):
            problems.append("Domain email is not a valid email address")
        elif not is_domain_email(domain_email):
            problems.append("Domain email must belong to the organisation's own domain")
    elif community_type == CommunityType.MULTI:
        cleaned = clean_authorized_emails(authorized_persons or [])
        invalid = [email for email in cleaned if not is_valid_email(email)]
        if invalid:
            problems.append(f"Invalid authorized email(s): {', '.join(invalid)}")
        if len(cleaned) < settings.min_authorized_persons:
            problems.append(
                f"Please add at least {settings.min_authorized_persons} authorized persons"
            )
    else:
        problems.append(f"Unknown community type: {community_type}")
    return problems


class CamelModel(BaseModel):
    """Base model speaking the camelCase wire format."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommunityCreate(CamelModel):
    """Schema for creating a new community."""

    name: str
    description: str | None = None
    type: CommunityType
    image: str | None = None
    creator_id: int
    domain_email: str | None = None
    authorized_persons: list[str] | None = None

    @model_validator(mode="after")
    def _check_verification_fields(self) -> CommunityCreate:
        problems = community_field_problems(
            name=self.name,
            community_type=self.type,
            domain_email=self.domain_email,
            authorized_persons=self.authorized_persons,
        )
        if problems:
            raise ValueError("; ".join(problems))
        return self


class CommunityResponse(CamelModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    description: str | None
    type: CommunityType
    status: CommunityStatus
    image: str | None
    creator_id: int
    domain_email: str | None
    authorized_persons: list[str]
    approved_count: int
    members: list[int]
    join_requests: list[int]
    members_count: int
    created_at: datetime
    activated_at: datetime | None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class EmailOtpRequest(CamelModel):
    """Request to issue a domain-email OTP."""

    community_id: int
    domain_email: str


class EmailOtpConfirm(CamelModel):
    """Request to confirm a domain-email OTP."""

    community_id: int
    otp: str

    @field_validator("otp")
    @classmethod
    def _check_otp(cls, value: str) -> str:
        return require_otp_shape(value)


class OtpIssuedResponse(CamelModel):
    """Acknowledgement of an OTP dispatch.

    `otp` is only populated when code echo is enabled for manual relay.
    """

    status: str = "sent"
    otp: str | None = None
    expires_at: datetime


class InviteRequest(CamelModel):
    """Request to invite one authorized person."""

    email: str

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not is_valid_email(value):
            raise ValueError("Invalid email address")
        return normalize_email(value)


class InviteIssuedResponse(OtpIssuedResponse):
    """Acknowledgement of an authorized-person invite."""

    email: str


class InviteApproval(CamelModel):
    """Approval of one authorized-person invite.

    The approver is identified by user id when the console could resolve one,
    otherwise by the raw invited email.
    """

    community_id: int
    user_id: int | None = None
    email: str | None = None
    otp: str

    @field_validator("otp")
    @classmethod
    def _check_otp(cls, value: str) -> str:
        return require_otp_shape(value)

    @model_validator(mode="after")
    def _require_identifier(self) -> InviteApproval:
        if self.user_id is None and not (self.email and self.email.strip()):
            raise ValueError("Either userId or email is required")
        return self


class CommunityRecord(BaseModel):
    """Client-side view of a community, normalized from any server shape."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    description: str | None = None
    type: CommunityType
    status: CommunityStatus = CommunityStatus.PENDING
    image: str | None = None
    domain_email: str | None = Field(
        default=None, validation_alias=AliasChoices("domainEmail", "domain_email")
    )
    authorized_persons: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("authorizedPersons", "authorized_persons"),
    )
    approved_count: int = Field(
        default=0, validation_alias=AliasChoices("approvedCount", "approved_count")
    )
    members: list[str] = Field(default_factory=list)
    join_requests: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("joinRequests", "join_requests"),
    )
    members_count: int = Field(
        default=0, validation_alias=AliasChoices("membersCount", "members_count")
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("members", "join_requests", mode="before")
    @classmethod
    def _stringify_user_ids(cls, value: Any) -> list[str]:
        return [str(item) for item in value or []]

    @property
    def is_active(self) -> bool:
        return self.status == CommunityStatus.ACTIVE


class JoinDecision(CamelModel):
    """Admin decision on one pending join request."""

    community_id: int
    user_id: int
