"""Membership and post store backing the community detail endpoints.

Join requests move from Requested to Member on approval; a rejection deletes
the request so the user may ask again later. Posts can only be published in
Active communities.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from newsroom_admin.db.time import utcnow
from newsroom_admin.models import Community, CommunityMembership, CommunityPost, User
from newsroom_admin.schemas.community import CommunityStatus
from newsroom_admin.schemas.post import PostCreate
from newsroom_admin.services.tickets import RecordNotFoundError, TicketConflictError

logger = logging.getLogger(__name__)

REQUESTED = "Requested"
MEMBER = "Member"


class CommunityContentStore:
    """Database-backed store for community members and posts."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _community(self, community_id: int) -> Community:
        community = self.db.get(Community, community_id)
        if community is None:
            raise RecordNotFoundError("Community not found")
        return community

    def _user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise RecordNotFoundError("User not found")
        return user

    def _membership(self, community: Community, user_id: int) -> CommunityMembership | None:
        for membership in community.memberships:
            if membership.user_id == user_id:
                return membership
        return None

    # -- membership ------------------------------------------------------

    def request_join(self, community_id: int, user_id: int) -> Community:
        community = self._community(community_id)
        self._user(user_id)
        existing = self._membership(community, user_id)
        if existing is not None:
            if existing.status == MEMBER:
                raise TicketConflictError("Already a member of this community")
            raise TicketConflictError("Join request already pending")
        community.memberships.append(CommunityMembership(user_id=user_id, status=REQUESTED))
        self.db.commit()
        self.db.refresh(community)
        return community

    def _pending_request(self, community: Community, user_id: int) -> CommunityMembership:
        membership = self._membership(community, user_id)
        if membership is None or membership.status != REQUESTED:
            raise RecordNotFoundError("No pending join request for this user")
        return membership

    def approve_join(self, community_id: int, user_id: int) -> Community:
        """Turn a pending join request into a membership."""
        community = self._community(community_id)
        membership = self._pending_request(community, user_id)
        membership.status = MEMBER
        membership.joined_at = utcnow()
        self.db.commit()
        self.db.refresh(community)
        logger.info("User %s joined community %s", user_id, community_id)
        return community

    def reject_join(self, community_id: int, user_id: int) -> Community:
        """Drop a pending join request."""
        community = self._community(community_id)
        membership = self._pending_request(community, user_id)
        community.memberships.remove(membership)
        self.db.commit()
        self.db.refresh(community)
        return community

    # -- posts -----------------------------------------------------------

    def create_post(self, payload: PostCreate) -> CommunityPost:
        community = self._community(payload.community_id)
        if community.status != CommunityStatus.ACTIVE:
            raise TicketConflictError("Community is not active yet")
        author = self._user(payload.user_id)
        post = CommunityPost(
            community_id=community.id,
            author_id=author.id,
            author_name=(payload.author_name or "").strip() or author.name,
            content=payload.content,
            type=payload.type.value,
            likes=0,
            shares=0,
        )
        self.db.add(post)
        self.db.commit()
        self.db.refresh(post)
        logger.info("Post %s created in community %s", post.id, community.id)
        return post

    def list_posts(self, community_id: int) -> list[CommunityPost]:
        """Return a community's posts, newest first."""
        self._community(community_id)
        return (
            self.db.query(CommunityPost)
            .filter(CommunityPost.community_id == community_id)
            .order_by(CommunityPost.id.desc())
            .all()
        )

    def _post(self, post_id: int) -> CommunityPost:
        post = self.db.get(CommunityPost, post_id)
        if post is None:
            raise RecordNotFoundError("Post not found")
        return post

    def like_post(self, post_id: int) -> CommunityPost:
        post = self._post(post_id)
        post.likes += 1
        self.db.commit()
        self.db.refresh(post)
        return post

    def share_post(self, post_id: int) -> CommunityPost:
        post = self._post(post_id)
        post.shares += 1
        self.db.commit()
        self.db.refresh(post)
        return post
