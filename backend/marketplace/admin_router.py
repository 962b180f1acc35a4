"""
Admin API Router – user moderation, analytics, the action log and content removal.

Mounted at /api/admin/*; every route requires an admin account.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config import API_PREFIX
from database import User, get_db
from models import (
    ActionLogResponse,
    AdminUserResponse,
    AnalyticsResponse,
    RatingResponse,
    TaskResponse,
)

from .admin import AdminService
from .dependencies import require_admin

logger = logging.getLogger("gigboard.api.admin")

router = APIRouter(prefix=f"{API_PREFIX}/admin", tags=["Admin"])

admin_service = AdminService()


@router.get("/users", response_model=List[AdminUserResponse])
def list_users(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.list_users(db)


@router.post("/users/{user_id}/ban", response_model=AdminUserResponse)
def ban_user(user_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.ban_user(db, user_id, admin.id)


@router.post("/users/{user_id}/unban", response_model=AdminUserResponse)
def unban_user(user_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.unban_user(db, user_id, admin.id)


@router.get("/analytics", response_model=AnalyticsResponse)
def get_analytics(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.analytics(db)


@router.get("/logs", response_model=List[ActionLogResponse])
def get_logs(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.logs(db)


@router.delete("/tasks/{task_id}", response_model=TaskResponse)
def delete_task(task_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.delete_task(db, task_id, admin.id)


@router.delete("/ratings/{rating_id}", response_model=RatingResponse)
def delete_rating(rating_id: str, admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    return admin_service.delete_rating(db, rating_id, admin.id)
