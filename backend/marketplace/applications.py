"""
Task applications: freelancers applying to open tasks and clients deciding.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from database import Task, TaskApplication, User, new_id

from .chat import open_chat
from .errors import ConflictError, ForbiddenError, InvalidInputError, NotFoundError
from .notifier import Notifier, get_notifier
from .serializers import application_to_dict, task_to_dict, user_summary

logger = logging.getLogger("gigboard.applications")

DECISION_STATUSES = ("accepted", "rejected")


class ApplicationService:
    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or get_notifier()

    def apply(
        self,
        db: Session,
        freelancer_id: str,
        task_id: str,
        cover_letter: Optional[str] = None,
    ) -> Dict[str, Any]:
        user = db.query(User).filter(User.id == freelancer_id).first()
        if not user:
            raise ForbiddenError("User not found")

        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        if task.status != "open":
            raise ForbiddenError("Cannot apply to a task that is not open")

        existing = (
            db.query(TaskApplication)
            .filter(TaskApplication.task_id == task_id, TaskApplication.freelancer_id == freelancer_id)
            .first()
        )
        if existing:
            raise ConflictError("You have already applied to this task")

        application = TaskApplication(
            id=new_id(),
            task_id=task_id,
            freelancer_id=freelancer_id,
            cover_letter=cover_letter or None,
            status="pending",
            created_at=datetime.utcnow(),
        )
        db.add(application)
        self.notifier.notify(
            db,
            task.client_id,
            "APPLICATION_RECEIVED",
            "New Application",
            f"You have received a new application for your task: {task.title}",
            application.id,
        )
        db.commit()
        return application_to_dict(application)

    def list_for_task(self, db: Session, task_id: str, client_id: str) -> List[Dict[str, Any]]:
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        if task.client_id != client_id:
            raise ForbiddenError("You can only view applications for your own tasks")

        rows = (
            db.query(TaskApplication)
            .options(selectinload(TaskApplication.freelancer).selectinload(User.skills))
            .filter(TaskApplication.task_id == task_id)
            .order_by(TaskApplication.created_at.desc())
            .all()
        )
        output = []
        for row in rows:
            freelancer = user_summary(row.freelancer, "hourly_rate", "rating", "title", "location")
            if freelancer is not None:
                freelancer["skills"] = [skill.name for skill in row.freelancer.skills]
            output.append(application_to_dict(row, freelancer=freelancer))
        return output

    def list_for_freelancer(self, db: Session, freelancer_id: str) -> List[Dict[str, Any]]:
        rows = (
            db.query(TaskApplication)
            .options(selectinload(TaskApplication.task).selectinload(Task.client))
            .filter(TaskApplication.freelancer_id == freelancer_id)
            .order_by(TaskApplication.created_at.desc())
            .all()
        )
        return [
            application_to_dict(
                row,
                task=task_to_dict(row.task, client=user_summary(row.task.client)),
            )
            for row in rows
        ]

    def update_status(self, db: Session, application_id: str, client_id: str, status: str) -> Dict[str, Any]:
        if status not in DECISION_STATUSES:
            raise InvalidInputError(f"Status must be one of: {', '.join(DECISION_STATUSES)}")
        application = self._get_owned_application(
            db, application_id, client_id, "You can only update applications for your own tasks"
        )

        accepted = status == "accepted"
        self.notifier.notify(
            db,
            application.freelancer_id,
            "APPLICATION_ACCEPTED" if accepted else "APPLICATION_DECLINED",
            "Application Accepted" if accepted else "Application Declined",
            (
                f'Your application for "{application.task.title}" has been accepted!'
                if accepted
                else f'Your application for "{application.task.title}" has been declined.'
            ),
            application.id,
        )
        application.status = status
        db.commit()
        return application_to_dict(application)

    def assign(self, db: Session, application_id: str, client_id: str) -> Dict[str, Any]:
        application = self._get_owned_application(
            db, application_id, client_id, "You can only assign freelancers to your own tasks"
        )
        task = application.task

        application.status = "accepted"
        task.status = "in_progress"
        task.updated_at = datetime.utcnow()
        open_chat(db, client_id, application.freelancer_id, task.title)
        self.notifier.notify(
            db,
            application.freelancer_id,
            "APPLICATION_ACCEPTED",
            "Application Accepted",
            f"You have been assigned to the task: {task.title}",
            application.id,
        )
        db.commit()
        logger.info("[Assign] task=%s freelancer=%s", task.id, application.freelancer_id)
        return {
            "application": application_to_dict(application),
            "task": task_to_dict(task),
            "freelancer_id": application.freelancer_id,
        }

    @staticmethod
    def _get_owned_application(db: Session, application_id: str, client_id: str, message: str) -> TaskApplication:
        application = (
            db.query(TaskApplication)
            .options(selectinload(TaskApplication.task))
            .filter(TaskApplication.id == application_id)
            .first()
        )
        if not application:
            raise NotFoundError("Application not found")
        if application.task.client_id != client_id:
            raise ForbiddenError(message)
        return application
