"""Community detail view: posts, reactions, members and join requests.

Post creation is guarded the same way community creation is: a blank draft or
a session without a creator identity is rejected before any request is sent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from newsroom_admin.core.errors import DraftValidationError
from newsroom_admin.schemas.community import CommunityRecord
from newsroom_admin.schemas.post import PostRecord, PostType, post_content_problems
from newsroom_admin.schemas.user import DirectoryUser
from newsroom_admin.services.console_api import ConsoleApiClient
from newsroom_admin.services.listing import CommunityListing
from newsroom_admin.services.session import ConsoleSession

logger = logging.getLogger(__name__)

UNKNOWN_MEMBER = "Unknown User"


def member_names(record: CommunityRecord, directory: Iterable[DirectoryUser]) -> list[str]:
    """Resolve a community's member ids to display names."""
    names = {user.id: user.name for user in directory if user.id is not None}
    return [names.get(member_id) or UNKNOWN_MEMBER for member_id in record.members]


class CommunityDetail:
    """Posts and membership actions for one selected community."""

    def __init__(
        self,
        api: ConsoleApiClient,
        session: ConsoleSession,
        listing: CommunityListing | None = None,
    ) -> None:
        self.api = api
        self.session = session
        self.listing = listing
        self.posts: list[PostRecord] = []

    async def load_posts(self, community_id: str) -> list[PostRecord]:
        self.posts = await self.api.list_community_posts(community_id)
        return self.posts

    async def create_post(
        self,
        community_id: str,
        content: str,
        type_: PostType = PostType.PUBLIC,
    ) -> PostRecord:
        """Publish a post as the signed-in operator and reload the feed.

        Raises:
            DraftValidationError: If the content is blank.
            SessionInvalidError: If no creator identity is cached.
        """
        problems = post_content_problems(content)
        if problems:
            raise DraftValidationError(problems)
        user_id = self.session.require_creator_id()
        author_name = self.session.user.name if self.session.user is not None else None
        post = await self.api.create_post(
            {
                "communityId": community_id,
                "content": content.strip(),
                "type": PostType(type_).value,
                "authorName": author_name,
                "userId": user_id,
            }
        )
        logger.info("Post %s created in community %s", post.id, community_id)
        await self.load_posts(community_id)
        return post

    async def like(self, community_id: str, post_id: str) -> PostRecord:
        post = await self.api.like_post(post_id)
        await self.load_posts(community_id)
        return post

    async def share(self, community_id: str, post_id: str) -> PostRecord:
        post = await self.api.share_post(post_id)
        await self.load_posts(community_id)
        return post

    async def approve_join_request(self, community_id: str, user_id: str) -> CommunityRecord:
        """Accept a join request and refresh the listing."""
        record = await self.api.approve_join_request(community_id, user_id)
        logger.info("Join request of user %s approved for community %s", user_id, community_id)
        await self._refresh_listing()
        return record

    async def reject_join_request(self, community_id: str, user_id: str) -> CommunityRecord:
        """Drop a join request and refresh the listing."""
        record = await self.api.reject_join_request(community_id, user_id)
        logger.info("Join request of user %s rejected for community %s", user_id, community_id)
        await self._refresh_listing()
        return record

    async def _refresh_listing(self) -> None:
        if self.listing is not None:
            await self.listing.refresh()
