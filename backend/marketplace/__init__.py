"""
Marketplace domain for GigBoard.
Tasks, applications, direct requests, ratings, notifications, chat,
profiles and admin moderation on top of the SQLAlchemy models.
"""
from .errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    MarketplaceError,
    NotFoundError,
)
from .admin import AdminService
from .applications import ApplicationService
from .chat import ChatService
from .notifier import Notifier, get_notifier
from .profiles import ProfileService
from .ratings import RatingService
from .skills import PREDETERMINED_SKILLS, list_skills, seed_skills
from .task_requests import TaskRequestService
from .tasks import TaskService

__all__ = [
    "MarketplaceError",
    "NotFoundError",
    "InvalidStateError",
    "InvalidInputError",
    "ForbiddenError",
    "ConflictError",
    "AdminService",
    "ApplicationService",
    "ChatService",
    "Notifier",
    "get_notifier",
    "ProfileService",
    "RatingService",
    "PREDETERMINED_SKILLS",
    "list_skills",
    "seed_skills",
    "TaskRequestService",
    "TaskService",
]
