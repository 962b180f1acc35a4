"""
ORM row -> plain dict conversion used by services and routers.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from database import (
    ActionLog,
    Message,
    Notification,
    Rating,
    Task,
    TaskApplication,
    TaskRequest,
    User,
    decode_list,
)


def user_summary(user: Optional[User], *extra: str) -> Optional[Dict[str, Any]]:
    """Small public view of a user; ``extra`` names additional attributes."""
    if user is None:
        return None
    data = {
        "id": user.id,
        "full_name": user.full_name,
        "image_url": user.image_url if user.is_avatar_visible is not False else None,
    }
    for attr in extra:
        data[attr] = getattr(user, attr)
    return data


def user_skill_names(user: User) -> list[str]:
    return [skill.name for skill in user.skills]


def profile_to_dict(user: User, include_private: bool = False) -> Dict[str, Any]:
    data = {
        "id": user.id,
        "full_name": user.full_name,
        "user_type": user.user_type,
        "title": user.title,
        "bio": user.bio,
        "hourly_rate": user.hourly_rate,
        "location": user.location,
        "image_url": user.image_url,
        "is_avatar_visible": bool(user.is_avatar_visible),
        "is_hidden": bool(user.is_hidden),
        "rating": user.rating,
        "completed_jobs": user.completed_jobs,
        "skills": user_skill_names(user),
        "languages": decode_list(user.languages),
        "education": decode_list(user.education),
        "experience": decode_list(user.experience),
        "created_at": user.created_at,
    }
    if include_private:
        data["email"] = user.email
        data["is_banned"] = bool(user.is_banned)
    elif not user.is_avatar_visible:
        data["image_url"] = None
    return data


def task_to_dict(task: Task, **extra: Any) -> Dict[str, Any]:
    data = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "budget": task.budget,
        "skills": decode_list(task.skills),
        "image_url": task.image_url,
        "status": task.status,
        "client_id": task.client_id,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }
    data.update(extra)
    return data


def application_to_dict(application: TaskApplication, **extra: Any) -> Dict[str, Any]:
    data = {
        "id": application.id,
        "task_id": application.task_id,
        "freelancer_id": application.freelancer_id,
        "cover_letter": application.cover_letter,
        "status": application.status,
        "created_at": application.created_at,
    }
    data.update(extra)
    return data


def request_to_dict(request: TaskRequest, **extra: Any) -> Dict[str, Any]:
    data = {
        "id": request.id,
        "task_id": request.task_id,
        "client_id": request.client_id,
        "freelancer_id": request.freelancer_id,
        "status": request.status,
        "created_at": request.created_at,
    }
    data.update(extra)
    return data


def rating_to_dict(rating: Rating, **extra: Any) -> Dict[str, Any]:
    data = {
        "id": rating.id,
        "client_id": rating.client_id,
        "freelancer_id": rating.freelancer_id,
        "score": rating.score,
        "comment": rating.comment,
        "created_at": rating.created_at,
    }
    data.update(extra)
    return data


def notification_to_dict(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "related_id": notification.related_id,
        "is_read": bool(notification.is_read),
        "created_at": notification.created_at,
    }


def message_to_dict(message: Message, **extra: Any) -> Dict[str, Any]:
    data = {
        "id": message.id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "content": message.content,
        "is_system": bool(message.is_system),
        "created_at": message.created_at,
    }
    data.update(extra)
    return data


def action_log_to_dict(entry: ActionLog) -> Dict[str, Any]:
    user = entry.user
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "action": entry.action,
        "target_id": entry.target_id,
        "details": entry.details,
        "created_at": entry.created_at,
        "user": {
            "full_name": user.full_name,
            "email": user.email,
            "user_type": user.user_type,
        } if user else None,
    }
