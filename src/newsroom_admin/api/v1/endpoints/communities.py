# src/newsroom_admin/api/v1/endpoints/communities.py
"""Community creation and verification endpoints."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, HTTPException, Response, status

from newsroom_admin.core.settings import settings
from newsroom_admin.models import Community
from newsroom_admin.schemas.community import (
    CommunityCreate,
    CommunityResponse,
    EmailOtpConfirm,
    EmailOtpRequest,
    InviteApproval,
    InviteIssuedResponse,
    InviteRequest,
    OtpIssuedResponse,
)
from newsroom_admin.services.tickets import TicketStoreError

from ..dependencies import CurrentAdminDep, CurrentUserDep, SessionDep, TicketStoreDep

router = APIRouter(prefix="/communities", tags=["communities"])


def _raise_http(exc: TicketStoreError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


def _echo(otp: str) -> str | None:
    # Manual-relay affordance; production deployments leave echo disabled.
    return otp if settings.otp_echo_enabled else None


@router.get("", response_model=list[CommunityResponse])
async def list_communities(db: SessionDep, _current_user: CurrentUserDep) -> list[Community]:
    """List all communities, newest first."""
    return db.query(Community).order_by(Community.id.desc()).all()


@router.post(
    "",
    response_model=CommunityResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_community(
    payload: CommunityCreate,
    _admin: CurrentAdminDep,
    store: TicketStoreDep,
) -> Community:
    """Create a community in Pending status."""
    try:
        return store.create_community(payload)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.post("/verify-email/send", response_model=OtpIssuedResponse)
async def send_email_verification(
    payload: EmailOtpRequest,
    _admin: CurrentAdminDep,
    store: TicketStoreDep,
) -> OtpIssuedResponse:
    """Issue a domain-email OTP; any earlier code for the community stops working."""
    try:
        issued = store.issue_email_otp(payload.community_id, payload.domain_email)
    except TicketStoreError as exc:
        _raise_http(exc)
    return OtpIssuedResponse(otp=_echo(issued.otp), expires_at=issued.expires_at)


@router.post("/verify-email/confirm", response_model=CommunityResponse)
async def confirm_email_verification(
    payload: EmailOtpConfirm,
    _admin: CurrentAdminDep,
    store: TicketStoreDep,
) -> Community:
    """Confirm the domain-email OTP and activate the community."""
    try:
        return store.confirm_email_otp(payload.community_id, payload.otp)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.post("/authorized/approve", response_model=CommunityResponse)
async def approve_authorized_invite(
    payload: InviteApproval,
    _current_user: CurrentUserDep,
    store: TicketStoreDep,
) -> Community:
    """Approve one authorized-person invite with its OTP."""
    try:
        return store.approve_invite(
            payload.community_id,
            payload.otp,
            user_id=payload.user_id,
            email=payload.email,
        )
    except TicketStoreError as exc:
        _raise_http(exc)


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(
    community_id: int,
    _current_user: CurrentUserDep,
    store: TicketStoreDep,
) -> Community:
    """Get a specific community by ID."""
    try:
        return store.get_community(community_id)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.delete(
    "/{community_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_community(
    community_id: int,
    _admin: CurrentAdminDep,
    store: TicketStoreDep,
) -> Response:
    """Delete a community together with its tickets and invites."""
    try:
        store.delete_community(community_id)
    except TicketStoreError as exc:
        _raise_http(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{community_id}/invite-authorized", response_model=InviteIssuedResponse)
async def invite_authorized_person(
    community_id: int,
    payload: InviteRequest,
    _admin: CurrentAdminDep,
    store: TicketStoreDep,
) -> InviteIssuedResponse:
    """Issue (or re-issue) the OTP-bearing invite for one authorized person."""
    try:
        issued = store.issue_invite(community_id, payload.email)
    except TicketStoreError as exc:
        _raise_http(exc)
    return InviteIssuedResponse(
        email=issued.email,
        otp=_echo(issued.otp),
        expires_at=issued.expires_at,
    )
