# src/newsroom_admin/models/community.py
"""SQLAlchemy models for communities and their verification tickets.

Membership and posts live in `content.py`.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from newsroom_admin.db.session import Base
from newsroom_admin.db.time import utcnow
from newsroom_admin.models.content import CommunityMembership, CommunityPost


class Community(Base):
    """Community record; stays Pending until its verification flow completes."""

    __tablename__ = "community"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "Single" or "Multi"; never updated after insert.
    type: Mapped[str] = mapped_column(Text, nullable=False)
    # "Pending" or "Active".
    status: Mapped[str] = mapped_column(Text, nullable=False, default="Pending")
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=False,
    )
    domain_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    authorized_persons: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    email_ticket: Mapped[EmailVerificationTicket | None] = relationship(
        "EmailVerificationTicket",
        back_populates="community",
        cascade="all, delete-orphan",
        uselist=False,
    )
    invites: Mapped[list[AuthorizedInvite]] = relationship(
        "AuthorizedInvite",
        back_populates="community",
        cascade="all, delete-orphan",
        order_by="AuthorizedInvite.id",
    )
    memberships: Mapped[list[CommunityMembership]] = relationship(
        "CommunityMembership",
        back_populates="community",
        cascade="all, delete-orphan",
        order_by="CommunityMembership.id",
    )
    posts: Mapped[list[CommunityPost]] = relationship(
        "CommunityPost",
        back_populates="community",
        cascade="all, delete-orphan",
        order_by="CommunityPost.id.desc()",
    )

    @property
    def approved_count(self) -> int:
        """Return how many authorized-person invites have been approved."""
        return sum(1 for invite in self.invites if invite.approved)

    @property
    def members(self) -> list[int]:
        return [m.user_id for m in self.memberships if m.status == "Member"]

    @property
    def join_requests(self) -> list[int]:
        return [m.user_id for m in self.memberships if m.status == "Requested"]

    @property
    def members_count(self) -> int:
        return len(self.members)


class EmailVerificationTicket(Base):
    """The single active domain-email OTP of a community."""

    __tablename__ = "email_verification_ticket"

    # One row per community; re-issuing overwrites the code.
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    domain_email: Mapped[str] = mapped_column(Text, nullable=False)
    otp_code: Mapped[str] = mapped_column(Text, nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    community: Mapped[Community] = relationship("Community", back_populates="email_ticket")


class AuthorizedInvite(Base):
    """OTP-bearing invite sent to one authorized person of a Multi community."""

    __tablename__ = "authorized_invite"
    __table_args__ = (UniqueConstraint("community_id", "email"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(Text, nullable=False)
    # Cleared once approved so the code cannot be replayed.
    otp_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approver_user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=True,
    )
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    community: Mapped[Community] = relationship("Community", back_populates="invites")
