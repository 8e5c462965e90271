# src/newsroom_admin/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import communities_router, community_content_router, users_router

__all__ = [
    "communities_router",
    "community_content_router",
    "users_router",
]
