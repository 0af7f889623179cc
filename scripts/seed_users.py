"""
Create or reset a portal login.

Usage:
    python scripts/seed_users.py USER_ID PASSWORD [--hash] [--dry-run]

Passwords are stored as given unless --hash is passed, in which case a
pbkdf2_sha256 hash is stored instead. Login accepts both forms.
"""
import sys
import os
import argparse

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.orm import Session
from portal.db import Base, SessionLocal, engine
from portal.models.models import User, UserSession
from portal.auth.security import get_password_hash, revoke_user_sessions
from portal.services.store import UserStore


def seed_user(db: Session, user_id: str, password: str, hash_password: bool = False, dry_run: bool = False) -> str:
    """Returns 'created', 'updated' or 'unchanged' (dry run)."""
    stored = get_password_hash(password) if hash_password else password
    store = UserStore(db)
    existing = store.get_user_by_login(user_id)
    if dry_run:
        print(f"[DRY RUN] Would {'reset' if existing else 'create'} user {user_id}")
        return "unchanged"
    if existing:
        store.update(existing.id, {"password": stored})
        revoked = revoke_user_sessions(db, existing.id)
        print(f"[UPDATE] Password reset for {user_id}, {revoked} session(s) ended")
        return "updated"
    store.create_user(user_id, stored)
    print(f"[CREATE] User {user_id} created")
    return "created"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or reset a portal login")
    parser.add_argument("user_id")
    parser.add_argument("password")
    parser.add_argument("--hash", action="store_true", help="store a pbkdf2_sha256 hash instead of the raw password")
    parser.add_argument("--dry-run", action="store_true", help="show what would happen without writing")
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine, tables=[User.__table__, UserSession.__table__])
    db = SessionLocal()
    try:
        seed_user(db, args.user_id, args.password, hash_password=args.hash, dry_run=args.dry_run)
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
