"""
Admin moderation: users, tasks, ratings, analytics and the action log.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from database import ActionLog, Rating, Task, User

from .activity import log_action
from .errors import InvalidStateError, NotFoundError
from .ratings import refresh_freelancer_rating
from .serializers import action_log_to_dict, rating_to_dict, task_to_dict
from .tasks import remove_task

logger = logging.getLogger("gigboard.admin")

GROWTH_MONTHS = 6


def _month_start(year: int, month: int) -> datetime:
    while month < 1:
        month += 12
        year -= 1
    while month > 12:
        month -= 12
        year += 1
    return datetime(year, month, 1)


def _status_label(status: str) -> str:
    return status[:1].upper() + status[1:].replace("_", " ")


def admin_user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "user_type": user.user_type,
        "is_banned": bool(user.is_banned),
        "created_at": user.created_at,
    }


class AdminService:
    def list_users(self, db: Session) -> List[Dict[str, Any]]:
        rows = db.query(User).order_by(User.created_at.desc()).all()
        logger.debug("[Admin] listing %s users", len(rows))
        return [admin_user_to_dict(row) for row in rows]

    def ban_user(self, db: Session, user_id: str, admin_id: str) -> Dict[str, Any]:
        user = self._get_user(db, user_id)
        if user.user_type == "admin":
            raise InvalidStateError("Cannot ban an admin user")

        user.is_banned = True
        log_action(db, admin_id, "BAN_USER", user_id, f"Banned user {user.email}")
        db.commit()
        return admin_user_to_dict(user)

    def unban_user(self, db: Session, user_id: str, admin_id: str) -> Dict[str, Any]:
        user = self._get_user(db, user_id)
        user.is_banned = False
        log_action(db, admin_id, "UNBAN_USER", user_id, f"Unbanned user {user.email}")
        db.commit()
        return admin_user_to_dict(user)

    def analytics(self, db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()

        user_types = dict(db.query(User.user_type, func.count(User.id)).group_by(User.user_type).all())
        task_statuses = db.query(Task.status, func.count(Task.id)).group_by(Task.status).all()

        first_month = _month_start(now.year, now.month - (GROWTH_MONTHS - 1))
        joined = [
            created_at
            for (created_at,) in db.query(User.created_at).filter(User.created_at >= first_month).all()
        ]
        growth = []
        for offset in range(GROWTH_MONTHS):
            month = _month_start(first_month.year, first_month.month + offset)
            growth.append({
                "name": month.strftime("%b"),
                "users": sum(1 for ts in joined if ts.year == month.year and ts.month == month.month),
            })

        return {
            "total_users": sum(user_types.values()),
            "total_tasks": db.query(func.count(Task.id)).scalar() or 0,
            "total_ratings": db.query(func.count(Rating.id)).scalar() or 0,
            "user_breakdown": {
                "freelancers": user_types.get("freelancer", 0),
                "clients": user_types.get("client", 0),
                "admins": user_types.get("admin", 0),
            },
            "task_status_data": [
                {"name": _status_label(status), "value": count} for status, count in task_statuses
            ],
            "user_growth_data": growth,
        }

    def logs(self, db: Session) -> List[Dict[str, Any]]:
        rows = (
            db.query(ActionLog)
            .options(selectinload(ActionLog.user))
            .order_by(ActionLog.created_at.desc())
            .all()
        )
        return [action_log_to_dict(row) for row in rows]

    def delete_task(self, db: Session, task_id: str, admin_id: str) -> Dict[str, Any]:
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")

        payload = task_to_dict(task)
        remove_task(db, task)
        log_action(db, admin_id, "ADMIN_TASK_DELETE", task_id, f"Admin deleted task: {task.title}")
        db.commit()
        return payload

    def delete_rating(self, db: Session, rating_id: str, admin_id: str) -> Dict[str, Any]:
        rating = db.query(Rating).filter(Rating.id == rating_id).first()
        if not rating:
            raise NotFoundError("Rating not found")

        payload = rating_to_dict(rating)
        db.delete(rating)
        refresh_freelancer_rating(db, payload["freelancer_id"])
        log_action(
            db,
            admin_id,
            "ADMIN_RATING_DELETE",
            rating_id,
            f"Admin deleted rating {payload['score']} for freelancer {payload['freelancer_id']}",
        )
        db.commit()
        return payload

    @staticmethod
    def _get_user(db: Session, user_id: str) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user
