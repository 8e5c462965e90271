# src/newsroom_admin/models/user.py
"""SQLAlchemy model for console and community users."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from newsroom_admin.db.session import Base
from newsroom_admin.db.time import utcnow


class User(Base):
    """Account that can sign in to the console or approve community invites."""

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # "Admin" for console operators; anything else is a regular account.
    role: Mapped[str] = mapped_column(Text, nullable=False, default="User")
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
