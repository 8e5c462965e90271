# src/newsroom_admin/scripts/seed_admin.py
"""Create the database tables and an Admin account for the console."""

from __future__ import annotations

import argparse
import getpass
import sys

from sqlalchemy.orm import Session

from newsroom_admin.core.security import hash_password
from newsroom_admin.core.settings import settings
from newsroom_admin.db.session import SessionLocal, create_tables
from newsroom_admin.models import User
from newsroom_admin.schemas.community import is_valid_email, normalize_email


def seed_admin(db: Session, *, name: str, email: str, password: str) -> tuple[User, bool]:
    """Create or promote the admin account. Returns (user, created)."""
    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()
    created = user is None
    if user is None:
        user = User(name=name, email=email, password_hash=hash_password(password))
        db.add(user)
    else:
        user.password_hash = hash_password(password)
    user.role = settings.privileged_role
    db.commit()
    db.refresh(user)
    return user, created


def main() -> None:
    parser = argparse.ArgumentParser(description="Create tables and seed an Admin account")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument(
        "--password",
        default=None,
        help="Password (prompted for when omitted)",
    )
    args = parser.parse_args()

    if not is_valid_email(args.email):
        print(f"[seed_admin] ERROR: invalid email {args.email!r}", file=sys.stderr)
        sys.exit(1)
    password = args.password or getpass.getpass("Admin password: ")

    create_tables()
    db = SessionLocal()
    try:
        user, created = seed_admin(db, name=args.name, email=args.email, password=password)
    finally:
        db.close()
    action = "created" if created else "updated"
    print(f"[seed_admin] {action} admin {user.email} (id={user.id})")


if __name__ == "__main__":
    main()
