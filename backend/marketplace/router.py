"""
Marketplace API Router – tasks, applications, direct requests, ratings,
notifications, chat, profiles and skills.

Mounted at /api/* in the main FastAPI app.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from config import (
    API_PREFIX,
    APPLY_RATE_LIMIT,
    MESSAGE_RATE_LIMIT,
    RATE_LIMIT_ENABLED,
    RECOMMENDATION_LIMIT_DEFAULT,
)
from database import User, get_db
from models import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusUpdate,
    AssignmentResponse,
    ConversationResponse,
    MessageCreate,
    MessageOnlyResponse,
    MessageResponse,
    NotificationResponse,
    ProfileResponse,
    ProfileUpdate,
    RatingCheckResponse,
    RatingCreate,
    RatingResponse,
    RecommendedFreelancerResponse,
    RegisterUserRequest,
    SkillResponse,
    TaskCreate,
    TaskRequestAcceptResponse,
    TaskRequestCreate,
    TaskRequestResponse,
    TaskResponse,
    TaskUpdate,
)

from .applications import ApplicationService
from .chat import ChatService
from .dependencies import get_current_user
from .notifier import get_notifier
from .profiles import ProfileService
from .ratings import RatingService
from .skills import list_skills
from .task_requests import TaskRequestService
from .tasks import TaskService

logger = logging.getLogger("gigboard.api")

router = APIRouter(prefix=API_PREFIX, tags=["Marketplace"])
limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

task_service = TaskService()
application_service = ApplicationService()
request_service = TaskRequestService()
rating_service = RatingService()
chat_service = ChatService()
profile_service = ProfileService()


def parse_limit(raw: Optional[str]) -> int:
    """Query-string limit; anything missing, malformed or non-positive falls back to the default."""
    if raw is None:
        return RECOMMENDATION_LIMIT_DEFAULT
    try:
        value = int(raw.strip())
    except ValueError:
        return RECOMMENDATION_LIMIT_DEFAULT
    return value if value > 0 else RECOMMENDATION_LIMIT_DEFAULT


def split_csv(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return values or None


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    payload: TaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Post a new task as the acting client"""
    return task_service.create_task(
        db,
        user.id,
        payload.title,
        payload.description,
        payload.budget,
        payload.skills,
        payload.image_url,
    )


@router.get("/tasks", response_model=List[TaskResponse])
def list_tasks(
    search: Optional[str] = None,
    skills: Optional[str] = Query(default=None, description="Comma-separated skill names"),
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return task_service.list_tasks(db, search=search, skills=split_csv(skills), status=status)


@router.get("/tasks/client/{client_id}", response_model=List[TaskResponse])
def list_client_tasks(client_id: str, db: Session = Depends(get_db)):
    return task_service.list_client_tasks(db, client_id)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, db: Session = Depends(get_db)):
    return task_service.get_task(db, task_id)


@router.get("/tasks/{task_id}/recommendations", response_model=List[RecommendedFreelancerResponse])
def get_recommendations(
    task_id: str,
    limit: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Ranked freelancers for an open task"""
    return task_service.recommend_freelancers(db, task_id, limit=parse_limit(limit))


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.update_task(db, task_id, user.id, payload.model_dump(exclude_unset=True))


@router.delete("/tasks/{task_id}", response_model=TaskResponse)
def delete_task(
    task_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return task_service.delete_task(db, task_id, user.id)


# ---------------------------------------------------------------------------
# Task applications
# ---------------------------------------------------------------------------
@router.post("/task-applications/{task_id}/apply", response_model=ApplicationResponse, status_code=201)
@limiter.limit(APPLY_RATE_LIMIT)
def apply_to_task(
    request: Request,
    task_id: str,
    payload: Optional[ApplicationCreate] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cover_letter = payload.cover_letter if payload else None
    return application_service.apply(db, user.id, task_id, cover_letter)


@router.get("/task-applications/task/{task_id}", response_model=List[ApplicationResponse])
def list_task_applications(
    task_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return application_service.list_for_task(db, task_id, user.id)


@router.get("/task-applications/freelancer", response_model=List[ApplicationResponse])
def list_my_applications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return application_service.list_for_freelancer(db, user.id)


@router.put("/task-applications/{application_id}/status", response_model=ApplicationResponse)
def update_application_status(
    application_id: str,
    payload: ApplicationStatusUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return application_service.update_status(db, application_id, user.id, payload.status)


@router.put("/task-applications/{application_id}/assign", response_model=AssignmentResponse)
def assign_application(
    application_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return application_service.assign(db, application_id, user.id)


# ---------------------------------------------------------------------------
# Task requests
# ---------------------------------------------------------------------------
@router.post("/task-requests", response_model=TaskRequestResponse, status_code=201)
def create_task_request(
    payload: TaskRequestCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return request_service.create(db, user.id, payload.task_id, payload.freelancer_id)


@router.get("/task-requests/pending", response_model=List[TaskRequestResponse])
def list_pending_requests(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return request_service.list_pending_for_freelancer(db, user.id)


@router.put("/task-requests/{request_id}/accept", response_model=TaskRequestAcceptResponse)
def accept_task_request(
    request_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return request_service.accept(db, request_id, user.id)


@router.put("/task-requests/{request_id}/reject", response_model=MessageOnlyResponse)
def reject_task_request(
    request_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return request_service.reject(db, request_id, user.id)


@router.put("/task-requests/{request_id}/cancel", response_model=MessageOnlyResponse)
def cancel_task_request(
    request_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return request_service.cancel(db, request_id, user.id)


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------
@router.post("/ratings", response_model=RatingResponse, status_code=201)
def rate_freelancer(
    payload: RatingCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return rating_service.rate(db, user.id, payload.freelancer_id, payload.score, payload.comment)


@router.get("/ratings/freelancer/{freelancer_id}", response_model=List[RatingResponse])
def list_freelancer_ratings(freelancer_id: str, db: Session = Depends(get_db)):
    return rating_service.list_for_freelancer(db, freelancer_id)


@router.get("/ratings/check/{freelancer_id}", response_model=RatingCheckResponse)
def check_rating(
    freelancer_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return rating_service.check_exists(db, user.id, freelancer_id)


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@router.get("/notifications", response_model=List[NotificationResponse])
def list_notifications(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_notifier().list_for_user(db, user.id)


@router.patch("/notifications/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_notifier().mark_read(db, notification_id, user.id)


@router.delete("/notifications/{notification_id}", response_model=Optional[NotificationResponse])
def delete_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_notifier().delete(db, notification_id, user.id)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------
@router.post("/chat/messages", response_model=MessageResponse, status_code=201)
@limiter.limit(MESSAGE_RATE_LIMIT)
def send_message(
    request: Request,
    payload: MessageCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return chat_service.send_message(db, user.id, payload.receiver_id, payload.content)


@router.get("/chat/conversations", response_model=List[ConversationResponse])
def list_conversations(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return chat_service.conversations(db, user.id)


@router.get("/chat/history/{partner_id}", response_model=List[MessageResponse])
def chat_history(
    partner_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return chat_service.history(db, user.id, partner_id)


# ---------------------------------------------------------------------------
# Profiles, users, skills
# ---------------------------------------------------------------------------
@router.get("/profile", response_model=ProfileResponse)
def get_my_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.get_profile(db, user.id)


@router.get("/profile/freelancers", response_model=List[ProfileResponse])
def list_freelancers(
    search: Optional[str] = None,
    skills: Optional[str] = Query(default=None, description="Comma-separated skill names"),
    db: Session = Depends(get_db),
):
    return profile_service.list_freelancers(db, search=search, skills=split_csv(skills))


@router.put("/profile/update", response_model=ProfileResponse)
def update_my_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return profile_service.update_profile(db, user.id, payload.model_dump(exclude_unset=True))


@router.get("/profile/{user_id}", response_model=ProfileResponse)
@router.get("/users/{user_id}", response_model=ProfileResponse)
def get_public_profile(user_id: str, db: Session = Depends(get_db)):
    return profile_service.get_public_profile(db, user_id)


@router.post("/users", response_model=ProfileResponse, status_code=201)
def register_user(payload: RegisterUserRequest, db: Session = Depends(get_db)):
    """Provision an account for an identity authenticated upstream"""
    return profile_service.register_user(db, payload.email, payload.full_name, payload.user_type)


@router.get("/skills", response_model=List[SkillResponse])
def get_skills(q: Optional[str] = None, db: Session = Depends(get_db)):
    return list_skills(db, q)


@router.get("/skills/search", response_model=List[SkillResponse])
def search_skills(q: Optional[str] = None, db: Session = Depends(get_db)):
    return list_skills(db, q)
