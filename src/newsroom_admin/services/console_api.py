"""Async REST client used by the admin console.

Every request attaches the cached bearer token. A 401 from any endpoint
clears the cached authentication state, both in storage and in the bound
`ConsoleSession`, and raises `UnauthorizedError` carrying the login
redirect. Other failures become `NetworkOrServerError` with the server's
message when one is present. There is no automatic retry, and no timeout
unless `API_TIMEOUT_SECONDS` is set.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from newsroom_admin.core.errors import NetworkOrServerError, UnauthorizedError
from newsroom_admin.core.settings import settings
from newsroom_admin.schemas.community import CommunityRecord
from newsroom_admin.schemas.post import PostRecord
from newsroom_admin.schemas.user import DirectoryUser
from newsroom_admin.services.storage import TOKEN_KEY, ClientStorage, clear_auth_state

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from newsroom_admin.services.session import ConsoleSession

# Configure logger for this module
logger = logging.getLogger(__name__)

HTTP_NO_CONTENT = 204
HTTP_BAD_REQUEST = 400
HTTP_UNAUTHORIZED = 401


@dataclass(frozen=True)
class ConsoleApiConfig:
    """Immutable configuration for console API access."""

    base_url: str
    timeout_seconds: float | None
    login_path: str


@dataclass(frozen=True)
class OtpIssue:
    """Acknowledgement of a domain-email OTP dispatch.

    `otp` is only present when the server echoes codes for manual relay.
    """

    otp: str | None
    expires_at: str | None = None


@dataclass(frozen=True)
class InviteReceipt:
    """Acknowledgement of one authorized-person invite."""

    email: str
    otp: str | None = None
    expires_at: str | None = None


def load_api_config() -> ConsoleApiConfig:
    """Build configuration object from global settings."""

    return ConsoleApiConfig(
        base_url=settings.api_base_url,
        timeout_seconds=settings.api_timeout_seconds,
        login_path=settings.login_path,
    )


def _extract_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if not isinstance(body, Mapping):
        return None
    detail = body.get("detail", body.get("message"))
    if isinstance(detail, list):
        # FastAPI validation errors: [{"loc": [...], "msg": "..."}]
        messages = [str(item.get("msg", item)) for item in detail if isinstance(item, Mapping)]
        return "; ".join(messages) or None
    return str(detail) if detail is not None else None


class ConsoleApiClient:
    """HTTP client wrapper for the console REST API."""

    def __init__(
        self,
        storage: ClientStorage,
        config: ConsoleApiConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        on_unauthorized: Callable[[str], None] | None = None,
        session: ConsoleSession | None = None,
    ) -> None:
        self.storage = storage
        self.session = session
        self.config = config or load_api_config()
        self._client = client
        self._owns_client = client is None
        self._on_unauthorized = on_unauthorized

    @classmethod
    def for_session(
        cls,
        session: ConsoleSession,
        config: ConsoleApiConfig | None = None,
        **kwargs: Any,
    ) -> ConsoleApiClient:
        """Build a client sharing the session's storage and cleared with it on 401."""
        return cls(session.storage, config, session=session, **kwargs)

    async def __aenter__(self) -> ConsoleApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        token = self.storage.get_item(TOKEN_KEY)
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _handle_unauthorized(self, message: str | None) -> UnauthorizedError:
        if self.session is not None:
            self.session.clear()
        clear_auth_state(self.storage)
        if self._on_unauthorized is not None:
            self._on_unauthorized(self.config.login_path)
        return UnauthorizedError(message, redirect_to=self.config.login_path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any | None = None,
    ) -> Any:
        client = self._ensure_client()
        try:
            response = await client.request(
                method,
                path,
                json=json_data,
                headers=self._auth_headers(),
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise NetworkOrServerError() from exc

        if response.status_code == HTTP_UNAUTHORIZED:
            logger.warning("%s %s returned 401; clearing cached session", method, path)
            raise self._handle_unauthorized(_extract_message(response))

        if response.status_code >= HTTP_BAD_REQUEST:
            message = _extract_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise NetworkOrServerError(message, status_code=response.status_code)

        if response.status_code == HTTP_NO_CONTENT or not response.content:
            return None
        return response.json()

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Return the raw {token, user} login payload."""
        data: dict[str, Any] = await self._request(
            "POST", "/users/login", json_data={"email": email, "password": password}
        )
        return data

    async def list_users(self) -> list[DirectoryUser]:
        data = await self._request("GET", "/users")
        return [DirectoryUser.model_validate(item) for item in data or []]

    async def list_communities(self) -> list[CommunityRecord]:
        data = await self._request("GET", "/communities")
        return [CommunityRecord.model_validate(item) for item in data or []]

    async def get_community(self, community_id: str) -> CommunityRecord:
        data = await self._request("GET", f"/communities/{community_id}")
        return CommunityRecord.model_validate(data)

    async def create_community(self, payload: Mapping[str, Any]) -> CommunityRecord:
        data = await self._request("POST", "/communities", json_data=dict(payload))
        return CommunityRecord.model_validate(data)

    async def delete_community(self, community_id: str) -> None:
        await self._request("DELETE", f"/communities/{community_id}")

    async def send_email_verification(self, community_id: str, domain_email: str) -> OtpIssue:
        data = await self._request(
            "POST",
            "/communities/verify-email/send",
            json_data={"communityId": community_id, "domainEmail": domain_email},
        )
        data = data or {}
        return OtpIssue(otp=data.get("otp"), expires_at=data.get("expiresAt"))

    async def confirm_domain_email(self, community_id: str, otp: str) -> CommunityRecord:
        data = await self._request(
            "POST",
            "/communities/verify-email/confirm",
            json_data={"communityId": community_id, "otp": otp},
        )
        return CommunityRecord.model_validate(data)

    async def invite_authorized_person(self, community_id: str, email: str) -> InviteReceipt:
        data = await self._request(
            "POST",
            f"/communities/{community_id}/invite-authorized",
            json_data={"email": email},
        )
        data = data or {}
        return InviteReceipt(
            email=data.get("email", email),
            otp=data.get("otp"),
            expires_at=data.get("expiresAt"),
        )

    async def approve_authorized_invite(
        self,
        community_id: str,
        otp: str,
        *,
        user_id: str | None = None,
        email: str | None = None,
    ) -> CommunityRecord:
        body: dict[str, Any] = {"communityId": community_id, "otp": otp}
        if user_id is not None:
            body["userId"] = user_id
        else:
            body["email"] = email
        data = await self._request("POST", "/communities/authorized/approve", json_data=body)
        return CommunityRecord.model_validate(data)

    async def join_community(self, community_id: str) -> CommunityRecord:
        data = await self._request("POST", f"/communities/{community_id}/join")
        return CommunityRecord.model_validate(data)

    async def approve_join_request(self, community_id: str, user_id: str) -> CommunityRecord:
        data = await self._request(
            "POST",
            "/communities/request/approve",
            json_data={"communityId": community_id, "userId": user_id},
        )
        return CommunityRecord.model_validate(data)

    async def reject_join_request(self, community_id: str, user_id: str) -> CommunityRecord:
        data = await self._request(
            "POST",
            "/communities/request/reject",
            json_data={"communityId": community_id, "userId": user_id},
        )
        return CommunityRecord.model_validate(data)

    async def list_community_posts(self, community_id: str) -> list[PostRecord]:
        data = await self._request("GET", f"/communities/{community_id}/posts")
        return [PostRecord.model_validate(item) for item in data or []]

    async def create_post(self, payload: Mapping[str, Any]) -> PostRecord:
        data = await self._request("POST", "/communities/posts", json_data=dict(payload))
        return PostRecord.model_validate(data)

    async def like_post(self, post_id: str) -> PostRecord:
        data = await self._request("PATCH", f"/communities/posts/{post_id}/like")
        return PostRecord.model_validate(data)

    async def share_post(self, post_id: str) -> PostRecord:
        data = await self._request("PATCH", f"/communities/posts/{post_id}/share")
        return PostRecord.model_validate(data)
