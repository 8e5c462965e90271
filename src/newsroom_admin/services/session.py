"""Explicit session context for the admin console.

The context is populated once from client storage at start-up and handed to
the services that need the operator's identity, instead of every screen
reading storage on its own.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from newsroom_admin.core.errors import SessionInvalidError
from newsroom_admin.schemas.user import AdminUser
from newsroom_admin.services.storage import (
    ADMIN_USER_KEY,
    AUTH_FLAG_KEY,
    TOKEN_KEY,
    ClientStorage,
    clear_auth_state,
)

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from newsroom_admin.services.console_api import ConsoleApiClient

logger = logging.getLogger(__name__)


def parse_admin_user(raw: str) -> AdminUser:
    """Parse the cached ``adminUser`` value.

    Raises:
        ValueError: If the value is not a JSON object describing a user.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as err:
        raise ValueError(f"adminUser is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise ValueError("adminUser is not a JSON object")
    try:
        return AdminUser.model_validate(data)
    except ValidationError as err:
        raise ValueError(f"adminUser has an unexpected shape: {err}") from err


@dataclass
class ConsoleSession:
    """Authenticated identity of the console operator."""

    storage: ClientStorage
    token: str | None = None
    is_authenticated: bool = False
    user: AdminUser | None = None

    @classmethod
    def load(cls, storage: ClientStorage) -> ConsoleSession:
        """Read the cached authentication values once."""
        raw_user = storage.get_item(ADMIN_USER_KEY)
        user: AdminUser | None = None
        if raw_user:
            try:
                user = parse_admin_user(raw_user)
            except ValueError as exc:
                logger.warning("Invalid admin user data: %s", exc)
        return cls(
            storage=storage,
            token=storage.get_item(TOKEN_KEY),
            is_authenticated=storage.get_item(AUTH_FLAG_KEY) == "true",
            user=user,
        )

    @property
    def creator_id(self) -> str | None:
        return self.user.id if self.user is not None else None

    def require_creator_id(self) -> str:
        """Return the operator's user id.

        Raises:
            SessionInvalidError: If no identity can be resolved.
        """
        creator_id = self.creator_id
        if not creator_id:
            raise SessionInvalidError()
        return creator_id

    def store_login(self, token: str, user: dict[str, Any]) -> AdminUser:
        """Persist a fresh login and refresh this context."""
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_item(AUTH_FLAG_KEY, "true")
        self.storage.set_item(ADMIN_USER_KEY, json.dumps(user))
        self.token = token
        self.is_authenticated = True
        self.user = AdminUser.model_validate(user)
        return self.user

    def clear(self) -> None:
        """Forget the cached identity, in storage and in memory."""
        clear_auth_state(self.storage)
        self.token = None
        self.is_authenticated = False
        self.user = None


async def sign_in(
    api: ConsoleApiClient, session: ConsoleSession, email: str, password: str
) -> AdminUser:
    """Log in through the API and cache the returned identity.

    Raises:
        UnauthorizedError: If the credentials are rejected.
    """
    data = await api.login(email, password)
    user = session.store_login(data["token"], data["user"])
    logger.info("Signed in as %s", user.email)
    return user
