# src/newsroom_admin/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation,
and normalize server responses on the console side.
"""

from .community import (
    CommunityCreate,
    CommunityRecord,
    CommunityResponse,
    CommunityStatus,
    CommunityType,
    EmailOtpConfirm,
    EmailOtpRequest,
    InviteApproval,
    InviteIssuedResponse,
    InviteRequest,
    JoinDecision,
    OtpIssuedResponse,
)
from .post import PostCreate, PostRecord, PostResponse, PostType
from .user import AdminUser, DirectoryUser, IdentityRecord, LoginRequest, LoginResponse, UserResponse

__all__ = [
    "CommunityCreate", "CommunityRecord", "CommunityResponse",
    "CommunityStatus", "CommunityType",
    "EmailOtpConfirm", "EmailOtpRequest", "OtpIssuedResponse",
    "InviteApproval", "InviteIssuedResponse", "InviteRequest", "JoinDecision",
    "PostCreate", "PostRecord", "PostResponse", "PostType",
    "AdminUser", "DirectoryUser", "IdentityRecord",
    "LoginRequest", "LoginResponse", "UserResponse",
]
