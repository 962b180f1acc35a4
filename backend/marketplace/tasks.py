"""
Task service: CRUD over client tasks and the freelancer recommendation feed.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from database import Task, TaskRequest, User, decode_list, encode_list, new_id
from recommender import CandidateProfile, SimilarTask, normalize_limit, recommend

from .activity import log_action
from .errors import ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
from .serializers import request_to_dict, task_to_dict, user_summary

logger = logging.getLogger("gigboard.tasks")

HISTORY_STATUSES = ("in_progress", "completed")
UPDATABLE_FIELDS = ("title", "description", "budget", "skills", "status", "image_url")


def shares_skill(skills: List[str], wanted: List[str]) -> bool:
    wanted_set = set(wanted)
    return any(skill in wanted_set for skill in skills)


def fetch_similar_tasks(db: Session, task: Task) -> List[SimilarTask]:
    """Worked-on tasks (other than ``task``) overlapping its skills, with accepted engagements."""
    target_skills = decode_list(task.skills)
    rows = (
        db.query(Task)
        .options(selectinload(Task.applications), selectinload(Task.requests))
        .filter(Task.id != task.id, Task.status.in_(HISTORY_STATUSES))
        .all()
    )
    similar: List[SimilarTask] = []
    for row in rows:
        skills = decode_list(row.skills)
        if target_skills and not shares_skill(skills, target_skills):
            continue
        similar.append(
            SimilarTask(
                task_id=row.id,
                skills=tuple(skills),
                created_at=row.created_at,
                application_freelancer_ids=tuple(
                    app.freelancer_id for app in row.applications if app.status == "accepted"
                ),
                request_freelancer_ids=tuple(
                    req.freelancer_id for req in row.requests if req.status == "accepted"
                ),
            )
        )
    return similar


def fetch_candidate_pool(db: Session, task: Task) -> List[CandidateProfile]:
    """Visible, non-banned freelancers other than the task's client."""
    rows = (
        db.query(User)
        .options(selectinload(User.skills))
        .filter(
            User.id != task.client_id,
            User.user_type == "freelancer",
            User.is_hidden.is_(False),
            User.is_banned.is_(False),
        )
        .all()
    )
    return [
        CandidateProfile(
            id=user.id,
            full_name=user.full_name,
            image_url=user.image_url,
            title=user.title,
            hourly_rate=user.hourly_rate,
            rating=user.rating,
            completed_jobs=user.completed_jobs,
            location=user.location,
            legacy_skills=tuple(decode_list(user.legacy_skills)),
            relational_skills=tuple(skill.name for skill in user.skills),
        )
        for user in rows
    ]


class TaskService:
    def create_task(
        self,
        db: Session,
        user_id: str,
        title: str,
        description: str,
        budget: float,
        skills: List[str],
        image_url: Optional[str],
    ) -> Dict[str, Any]:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ForbiddenError("User not found")
        if not image_url:
            raise InvalidInputError("Task image is required")

        task = Task(
            id=new_id(),
            title=title,
            description=description,
            budget=budget,
            skills=encode_list(skills),
            image_url=image_url,
            status="open",
            client_id=user_id,
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow(),
        )
        db.add(task)
        log_action(db, user_id, "TASK_CREATE", task.id, f"Task created: {title}")
        db.commit()
        return task_to_dict(task)

    def list_tasks(
        self,
        db: Session,
        search: Optional[str] = None,
        skills: Optional[List[str]] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        query = (
            db.query(Task)
            .options(selectinload(Task.client))
            .filter(Task.status == (status or "open"))
        )
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        rows = query.order_by(Task.created_at.desc()).all()
        if skills:
            rows = [row for row in rows if shares_skill(decode_list(row.skills), skills)]
        return [task_to_dict(row, client=user_summary(row.client)) for row in rows]

    def get_task(self, db: Session, task_id: str) -> Dict[str, Any]:
        task = (
            db.query(Task)
            .options(selectinload(Task.client), selectinload(Task.requests).selectinload(TaskRequest.freelancer))
            .filter(Task.id == task_id)
            .first()
        )
        if not task:
            raise NotFoundError("Task not found")
        return task_to_dict(
            task,
            client=user_summary(task.client, "location", "rating"),
            task_requests=[
                request_to_dict(req, freelancer=user_summary(req.freelancer, "title"))
                for req in task.requests
            ],
        )

    def list_client_tasks(self, db: Session, client_id: str) -> List[Dict[str, Any]]:
        rows = (
            db.query(Task)
            .filter(Task.client_id == client_id)
            .order_by(Task.created_at.desc())
            .all()
        )
        return [task_to_dict(row) for row in rows]

    def update_task(self, db: Session, task_id: str, user_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        task = self._get_owned_task(db, task_id, user_id, "You can only update your own tasks")

        previous_status = task.status
        for field_name in UPDATABLE_FIELDS:
            if field_name not in changes or changes[field_name] is None:
                continue
            value = changes[field_name]
            if field_name == "skills":
                value = encode_list(value)
            setattr(task, field_name, value)
        task.updated_at = datetime.utcnow()

        if task.status != previous_status:
            log_action(
                db,
                task.client_id,
                "TASK_STATUS_UPDATE",
                task.id,
                f"Task status updated to {task.status}: {task.title}",
            )
        db.commit()
        return task_to_dict(task)

    def delete_task(self, db: Session, task_id: str, user_id: str) -> Dict[str, Any]:
        task = self._get_owned_task(db, task_id, user_id, "You can only delete your own tasks")
        if task.status != "open":
            raise ForbiddenError('Only tasks with "open" status can be deleted')

        payload = task_to_dict(task)
        remove_task(db, task)
        log_action(db, user_id, "TASK_DELETE", task_id, f"Task deleted: {task.title}")
        db.commit()
        return payload

    def recommend_freelancers(
        self,
        db: Session,
        task_id: str,
        limit: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        if task.status != "open":
            raise InvalidStateError("Recommendations are only available for open tasks")

        similar_tasks = fetch_similar_tasks(db, task)
        candidates = fetch_candidate_pool(db, task)
        ranked = recommend(
            decode_list(task.skills),
            similar_tasks,
            candidates,
            limit=normalize_limit(limit),
            now=now,
        )
        logger.info(
            "[Recommend] task=%s corpus=%s pool=%s returned=%s",
            task_id,
            len(similar_tasks),
            len(candidates),
            len(ranked),
        )
        return [candidate.to_dict() for candidate in ranked]

    @staticmethod
    def _get_owned_task(db: Session, task_id: str, user_id: str, message: str) -> Task:
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        if task.client_id != user_id:
            raise ForbiddenError(message)
        return task


def remove_task(db: Session, task: Task) -> None:
    """Delete a task; applications and requests go with it via the relationship cascade."""
    db.delete(task)
