"""
Create tables, seed the skill catalogue and optionally provision an admin account.

Usage:
    python seed.py                    # tables + skills
    python seed.py --admin-email ops@example.com --admin-name "Ops"
"""
import argparse
import logging
import sys
from datetime import datetime

from sqlalchemy import func

from config import ADMIN_EMAIL, ADMIN_NAME, LOG_LEVEL
from database import SessionLocal, User, init_db, new_id
from marketplace.skills import seed_skills

logger = logging.getLogger("gigboard.seed")


def ensure_admin(db, email: str, full_name: str) -> User:
    """Create the admin account, or promote an existing account with that email."""
    email = email.strip().lower()
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if user is None:
        user = User(
            id=new_id(),
            email=email,
            full_name=full_name,
            user_type="admin",
            created_at=datetime.utcnow(),
        )
        db.add(user)
        logger.info("[Seed] created admin %s", email)
    elif user.user_type != "admin":
        user.user_type = "admin"
        user.is_banned = False
        logger.info("[Seed] promoted %s to admin", email)
    db.commit()
    return user


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the GigBoard database")
    parser.add_argument("--admin-email", default=ADMIN_EMAIL, help="Admin account email (default: $ADMIN_EMAIL)")
    parser.add_argument("--admin-name", default=ADMIN_NAME, help="Admin display name (default: $ADMIN_NAME)")
    parser.add_argument("--skip-skills", action="store_true", help="Do not seed the skill catalogue")
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

    init_db()
    db = SessionLocal()
    try:
        if not args.skip_skills:
            added = seed_skills(db)
            print(f"✓ Skills seeded ({added} new)")
        if args.admin_email:
            admin = ensure_admin(db, args.admin_email, args.admin_name)
            print(f"✓ Admin ready: {admin.email} ({admin.id})")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
