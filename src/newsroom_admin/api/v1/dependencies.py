"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from newsroom_admin.core.security import decode_access_token
from newsroom_admin.core.settings import settings
from newsroom_admin.db.session import get_db
from newsroom_admin.models import User
from newsroom_admin.services.community_content import CommunityContentStore
from newsroom_admin.services.otp_delivery import OtpDispatcher, get_otp_dispatcher
from newsroom_admin.services.tickets import VerificationTicketStore

# HTTP Bearer scheme; missing headers are reported as 401 below.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises:
        HTTPException: If the token is missing or invalid, or the user is gone
    """
    if credentials is None:
        raise _credentials_error("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload["sub"])
    except (JWTError, ValueError) as err:
        raise _credentials_error() from err

    user = db.get(User, user_id)
    if user is None:
        raise _credentials_error("User not found")
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_current_admin(current_user: CurrentUserDep) -> User:
    """Require the privileged console role."""
    if current_user.role != settings.privileged_role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


CurrentAdminDep = Annotated[User, Depends(get_current_admin)]


def get_otp_dispatcher_dep() -> OtpDispatcher:
    return get_otp_dispatcher()


def get_ticket_store(
    db: SessionDep,
    dispatcher: Annotated[OtpDispatcher, Depends(get_otp_dispatcher_dep)],
) -> VerificationTicketStore:
    """Build the verification ticket store for the current request."""
    return VerificationTicketStore(db, dispatcher)


TicketStoreDep = Annotated[VerificationTicketStore, Depends(get_ticket_store)]


def get_content_store(db: SessionDep) -> CommunityContentStore:
    """Build the membership and post store for the current request."""
    return CommunityContentStore(db)


ContentStoreDep = Annotated[CommunityContentStore, Depends(get_content_store)]
