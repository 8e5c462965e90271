# src/newsroom_admin/api/v1/endpoints/community_content.py
"""Community membership and post endpoints."""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, HTTPException, status

from newsroom_admin.models import Community, CommunityPost
from newsroom_admin.schemas.community import CommunityResponse, JoinDecision
from newsroom_admin.schemas.post import PostCreate, PostResponse
from newsroom_admin.services.tickets import TicketStoreError

from ..dependencies import ContentStoreDep, CurrentAdminDep, CurrentUserDep

router = APIRouter(prefix="/communities", tags=["community-content"])


def _raise_http(exc: TicketStoreError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    store: ContentStoreDep,
) -> CommunityPost:
    """Publish a post in an Active community as the calling user."""
    if payload.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot post as another user",
        )
    try:
        return store.create_post(payload)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.patch("/posts/{post_id}/like", response_model=PostResponse)
async def like_post(post_id: int, _current_user: CurrentUserDep, store: ContentStoreDep) -> CommunityPost:
    try:
        return store.like_post(post_id)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.patch("/posts/{post_id}/share", response_model=PostResponse)
async def share_post(post_id: int, _current_user: CurrentUserDep, store: ContentStoreDep) -> CommunityPost:
    try:
        return store.share_post(post_id)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.post("/request/approve", response_model=CommunityResponse)
async def approve_join_request(
    payload: JoinDecision,
    _admin: CurrentAdminDep,
    store: ContentStoreDep,
) -> Community:
    """Accept a pending join request."""
    try:
        return store.approve_join(payload.community_id, payload.user_id)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.post("/request/reject", response_model=CommunityResponse)
async def reject_join_request(
    payload: JoinDecision,
    _admin: CurrentAdminDep,
    store: ContentStoreDep,
) -> Community:
    """Drop a pending join request."""
    try:
        return store.reject_join(payload.community_id, payload.user_id)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.get("/{community_id}/posts", response_model=list[PostResponse])
async def list_posts(
    community_id: int,
    _current_user: CurrentUserDep,
    store: ContentStoreDep,
) -> list[CommunityPost]:
    """List a community's posts, newest first."""
    try:
        return store.list_posts(community_id)
    except TicketStoreError as exc:
        _raise_http(exc)


@router.post("/{community_id}/join", response_model=CommunityResponse)
async def join_community(
    community_id: int,
    current_user: CurrentUserDep,
    store: ContentStoreDep,
) -> Community:
    """Ask to join a community as the calling user."""
    try:
        return store.request_join(community_id, current_user.id)
    except TicketStoreError as exc:
        _raise_http(exc)
