# src/newsroom_admin/schemas/user.py
"""User-related Pydantic schemas."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class LoginRequest(BaseModel):
    """Credentials submitted by the console login screen."""

    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user account."""

    id: int
    name: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    """Bearer token plus the user record the console caches locally."""

    token: str
    user: UserResponse


class IdentityRecord(BaseModel):
    """Identity-bearing record normalized at the API boundary.

    Backends have returned users with either `_id` or `id`; both collapse into
    a single string `id` here so downstream code never checks for both.
    """

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str | None = Field(default=None, validation_alias=AliasChoices("name", "fullName"))
    email: str | None = None
    role: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)


class AdminUser(IdentityRecord):
    """User record cached by the console after login."""


class DirectoryUser(IdentityRecord):
    """Entry of the user directory used to resolve invite approvers."""
