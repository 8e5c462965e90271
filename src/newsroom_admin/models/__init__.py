# src/newsroom_admin/models/__init__.py
"""SQLAlchemy models for the reference verification API."""

from .community import AuthorizedInvite, Community, EmailVerificationTicket
from .content import CommunityMembership, CommunityPost
from .user import User

__all__ = [
    "AuthorizedInvite", "Community", "EmailVerificationTicket",
    "CommunityMembership", "CommunityPost",
    "User",
]
