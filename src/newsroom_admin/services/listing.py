"""Cached community listing shown by the community management screen."""

from __future__ import annotations

import logging

from newsroom_admin.core.errors import NetworkOrServerError
from newsroom_admin.schemas.community import CommunityRecord
from newsroom_admin.services.console_api import ConsoleApiClient

logger = logging.getLogger(__name__)

ALL = "all"


class CommunityListing:
    """Local cache of communities with the screen's type and status filters."""

    def __init__(self, api: ConsoleApiClient) -> None:
        self.api = api
        self.communities: list[CommunityRecord] = []
        self.loading = False

    async def refresh(self) -> list[CommunityRecord]:
        """Reload the cache; on failure the previous cache is kept."""
        self.loading = True
        try:
            self.communities = await self.api.list_communities()
        except NetworkOrServerError as exc:
            logger.error("Fetch communities error: %s", exc)
            raise
        finally:
            self.loading = False
        return self.communities

    def filtered(self, type_: str = ALL, status: str = ALL) -> list[CommunityRecord]:
        """Return cached communities matching the type and status filters."""
        return [
            community
            for community in self.communities
            if (type_ == ALL or community.type == type_)
            and (status == ALL or community.status == status)
        ]

    def get(self, community_id: str) -> CommunityRecord | None:
        for community in self.communities:
            if community.id == community_id:
                return community
        return None

    async def delete(self, community_id: str) -> None:
        """Delete a community server-side, then reload the cache."""
        await self.api.delete_community(community_id)
        await self.refresh()
