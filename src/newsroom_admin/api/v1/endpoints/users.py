# src/newsroom_admin/api/v1/endpoints/users.py
"""User login and directory endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from newsroom_admin.core.security import create_access_token, verify_password
from newsroom_admin.models import User
from newsroom_admin.schemas.community import normalize_email
from newsroom_admin.schemas.user import LoginRequest, LoginResponse, UserResponse

from ..dependencies import CurrentUserDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: SessionDep) -> LoginResponse:
    """Exchange email and password for a bearer token."""
    user = db.query(User).filter(User.email == normalize_email(payload.email)).first()
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("Rejected login for %s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    token = create_access_token(user.id, extra_claims={"role": user.role})
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get("", response_model=list[UserResponse])
async def list_users(db: SessionDep, _current_user: CurrentUserDep) -> list[User]:
    """Return the user directory."""
    return db.query(User).order_by(User.id).all()
