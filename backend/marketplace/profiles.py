"""
User accounts and profiles.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from database import Skill, User, decode_list, encode_list, new_id

from .errors import ConflictError, InvalidInputError, NotFoundError
from .serializers import profile_to_dict, user_skill_names

logger = logging.getLogger("gigboard.profiles")

REGISTERABLE_TYPES = ("client", "freelancer")
PROFILE_FIELDS = ("full_name", "title", "bio", "hourly_rate", "location", "image_url", "is_avatar_visible")
LIST_FIELDS = ("languages", "education", "experience")


class ProfileService:
    def register_user(
        self,
        db: Session,
        email: str,
        full_name: str,
        user_type: str = "client",
    ) -> Dict[str, Any]:
        if user_type not in REGISTERABLE_TYPES:
            raise InvalidInputError(f"User type must be one of: {', '.join(REGISTERABLE_TYPES)}")
        email = email.strip().lower()
        if db.query(User).filter(func.lower(User.email) == email).first():
            raise ConflictError("A user with this email already exists")

        user = User(
            id=new_id(),
            email=email,
            full_name=full_name,
            user_type=user_type,
            created_at=datetime.utcnow(),
        )
        db.add(user)
        db.commit()
        logger.info("[Profile] registered %s user %s", user_type, user.id)
        return profile_to_dict(user, include_private=True)

    def get_profile(self, db: Session, user_id: str) -> Dict[str, Any]:
        return profile_to_dict(self._get_user(db, user_id), include_private=True)

    def get_public_profile(self, db: Session, user_id: str) -> Dict[str, Any]:
        return profile_to_dict(self._get_user(db, user_id))

    def list_freelancers(
        self,
        db: Session,
        search: Optional[str] = None,
        skills: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        query = (
            db.query(User)
            .options(selectinload(User.skills))
            .filter(
                User.user_type == "freelancer",
                User.is_hidden.is_(False),
                User.is_banned.is_(False),
            )
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.full_name.ilike(pattern), User.title.ilike(pattern)))
        rows = query.all()

        if skills:
            wanted = {skill.lower() for skill in skills}
            rows = [
                row for row in rows
                if wanted & {name.lower() for name in user_skill_names(row) + decode_list(row.legacy_skills)}
            ]
        # Unrated freelancers sink to the bottom.
        rows.sort(key=lambda row: row.rating or 0, reverse=True)
        return [profile_to_dict(row) for row in rows]

    def update_profile(self, db: Session, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        user = self._get_user(db, user_id)

        for field_name in PROFILE_FIELDS:
            if changes.get(field_name) is not None:
                setattr(user, field_name, changes[field_name])
        for field_name in LIST_FIELDS:
            if changes.get(field_name) is not None:
                setattr(user, field_name, encode_list(changes[field_name]))
        if changes.get("is_hidden") is not None and user.user_type == "freelancer":
            user.is_hidden = bool(changes["is_hidden"])
        if changes.get("skills") is not None:
            user.skills = match_skills(db, changes["skills"])

        db.commit()
        return profile_to_dict(user, include_private=True)

    @staticmethod
    def _get_user(db: Session, user_id: str) -> User:
        user = (
            db.query(User)
            .options(selectinload(User.skills))
            .filter(User.id == user_id)
            .first()
        )
        if not user:
            raise NotFoundError("User not found")
        return user


def match_skills(db: Session, names: List[str]) -> List[Skill]:
    """Existing catalogue skills matching ``names`` case-insensitively; unknown names are dropped."""
    wanted = {name.strip().lower() for name in names if name and name.strip()}
    if not wanted:
        return []
    return db.query(Skill).filter(func.lower(Skill.name).in_(wanted)).order_by(Skill.name).all()
