# src/newsroom_admin/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .communities import router as communities_router
from .community_content import router as community_content_router
from .users import router as users_router

__all__ = [
    "communities_router",
    "community_content_router",
    "users_router",
]
