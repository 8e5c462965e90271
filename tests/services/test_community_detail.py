# tests/services/test_community_detail.py
"""Unit tests for the community detail service."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from newsroom_admin.core.errors import DraftValidationError, SessionInvalidError
from newsroom_admin.schemas.community import CommunityRecord
from newsroom_admin.schemas.post import PostRecord
from newsroom_admin.schemas.user import DirectoryUser
from newsroom_admin.services.community_detail import CommunityDetail, member_names
from newsroom_admin.services.console_api import ConsoleApiClient
from newsroom_admin.services.listing import CommunityListing
from newsroom_admin.services.session import ConsoleSession
from newsroom_admin.services.storage import ADMIN_USER_KEY, AUTH_FLAG_KEY, MemoryStorage


@pytest.fixture
def api():
    api = AsyncMock(spec=ConsoleApiClient)
    api.list_communities.return_value = []
    api.list_community_posts.return_value = []
    return api


@pytest.fixture
def session() -> ConsoleSession:
    storage = MemoryStorage(
        {
            AUTH_FLAG_KEY: "true",
            ADMIN_USER_KEY: json.dumps({"_id": "u1", "name": "Ada Admin", "role": "Admin"}),
        }
    )
    return ConsoleSession.load(storage)


@pytest.fixture
def detail(api, session) -> CommunityDetail:
    return CommunityDetail(api, session, CommunityListing(api))


def _post(**overrides) -> PostRecord:
    data = {"_id": 7, "communityId": 1, "content": "Launch day", "likes": 0, "shares": 0}
    data.update(overrides)
    return PostRecord.model_validate(data)


@pytest.mark.asyncio
async def test_create_post_sends_operator_identity(detail, api) -> None:
    api.create_post.return_value = _post()
    api.list_community_posts.return_value = [_post()]

    post = await detail.create_post("1", "  Launch day ", "Event")

    assert post.id == "7"
    api.create_post.assert_awaited_once_with(
        {
            "communityId": "1",
            "content": "Launch day",
            "type": "Event",
            "authorName": "Ada Admin",
            "userId": "u1",
        }
    )
    api.list_community_posts.assert_awaited_once_with("1")
    assert [item.id for item in detail.posts] == ["7"]


@pytest.mark.asyncio
async def test_blank_post_blocked_before_request(detail, api) -> None:
    with pytest.raises(DraftValidationError, match="Post content is required"):
        await detail.create_post("1", "   ")
    api.create_post.assert_not_awaited()


@pytest.mark.asyncio
async def test_post_without_session_identity(api) -> None:
    detail = CommunityDetail(api, ConsoleSession.load(MemoryStorage()))
    with pytest.raises(SessionInvalidError):
        await detail.create_post("1", "Launch day")
    api.create_post.assert_not_awaited()


@pytest.mark.asyncio
async def test_like_and_share_reload_posts(detail, api) -> None:
    api.like_post.return_value = _post(likes=1)
    api.share_post.return_value = _post(likes=1, shares=1)

    liked = await detail.like("1", "7")
    shared = await detail.share("1", "7")

    assert liked.likes == 1
    assert shared.shares == 1
    assert api.list_community_posts.await_count == 2


@pytest.mark.asyncio
async def test_join_decisions_refresh_listing(detail, api) -> None:
    record = CommunityRecord.model_validate(
        {"_id": 1, "name": "Tech Daily", "type": "Single", "status": "Active", "members": [5]}
    )
    api.approve_join_request.return_value = record
    api.reject_join_request.return_value = record

    approved = await detail.approve_join_request("1", "5")
    await detail.reject_join_request("1", "6")

    assert approved.members == ["5"]
    api.reject_join_request.assert_awaited_once_with("1", "6")
    assert api.list_communities.await_count == 2


def test_member_names_fall_back_to_unknown() -> None:
    record = CommunityRecord.model_validate(
        {"id": "1", "name": "Tech Daily", "type": "Single", "members": ["5", "6"]}
    )
    directory = [DirectoryUser.model_validate({"_id": 5, "fullName": "Rita Reporter"})]
    assert member_names(record, directory) == ["Rita Reporter", "Unknown User"]
