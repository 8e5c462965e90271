"""Route guard for administrative console views.

The guard is a synchronous check over cached client state. It only spares the
operator from screens they cannot use; the API still authorizes every
request on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from newsroom_admin.core.settings import settings
from newsroom_admin.services.session import parse_admin_user
from newsroom_admin.services.storage import (
    ADMIN_USER_KEY,
    AUTH_FLAG_KEY,
    ClientStorage,
    clear_auth_state,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of a guard check: either allowed, or a redirect target."""

    allowed: bool
    redirect_to: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class Redirect:
    """Rendered in place of a protected view."""

    location: str
    replace: bool = True


@dataclass(frozen=True)
class Rendered(Generic[T]):
    content: T


def check_access(
    storage: ClientStorage,
    *,
    privileged_role: str | None = None,
    login_path: str | None = None,
) -> GuardDecision:
    """Decide whether the cached session may see administrative views.

    Malformed or missing user records fail closed: cached auth state is
    cleared and the operator is sent to the login screen.
    """
    role = privileged_role or settings.privileged_role
    login = login_path or settings.login_path

    if storage.get_item(AUTH_FLAG_KEY) != "true":
        return GuardDecision(allowed=False, redirect_to=login, reason="not authenticated")

    raw_user = storage.get_item(ADMIN_USER_KEY)
    if not raw_user:
        clear_auth_state(storage)
        return GuardDecision(allowed=False, redirect_to=login, reason="missing user record")

    try:
        user = parse_admin_user(raw_user)
    except ValueError as exc:
        logger.error("Invalid admin user data: %s", exc)
        clear_auth_state(storage)
        return GuardDecision(allowed=False, redirect_to=login, reason="unreadable user record")

    if user.role != role:
        clear_auth_state(storage)
        return GuardDecision(allowed=False, redirect_to=login, reason=f"role {user.role!r}")

    return GuardDecision(allowed=True)


def protect(storage: ClientStorage, render: Callable[[], T]) -> Rendered[T] | Redirect:
    """Render a view only when the guard allows it.

    `render` is not called at all when access is denied.
    """
    decision = check_access(storage)
    if not decision.allowed:
        return Redirect(location=decision.redirect_to or settings.login_path)
    return Rendered(render())
