"""
Direct task requests: a client invites a specific freelancer to an open task.

Lifecycle of the task while a request is outstanding:
open -> pending (request sent) -> in_progress (accepted) | open (rejected/cancelled)
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from database import Task, TaskRequest, User, new_id

from .activity import log_action
from .chat import open_chat
from .errors import ForbiddenError, InvalidInputError, InvalidStateError, NotFoundError
from .notifier import Notifier, get_notifier
from .serializers import request_to_dict, task_to_dict, user_summary

logger = logging.getLogger("gigboard.task_requests")


class TaskRequestService:
    def __init__(self, notifier: Optional[Notifier] = None):
        self.notifier = notifier or get_notifier()

    def create(self, db: Session, client_id: str, task_id: str, freelancer_id: str) -> Dict[str, Any]:
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise NotFoundError("Task not found")
        if task.client_id != client_id:
            raise ForbiddenError("You can only assign your own tasks")
        if task.status != "open":
            raise InvalidStateError("Only open tasks can be assigned to freelancers")
        if client_id == freelancer_id:
            raise InvalidInputError("You cannot send a task request to yourself")

        existing = (
            db.query(TaskRequest)
            .filter(
                TaskRequest.task_id == task_id,
                TaskRequest.freelancer_id == freelancer_id,
                TaskRequest.status == "pending",
            )
            .first()
        )
        if existing:
            raise InvalidInputError("You have already sent a request to this person for this task")

        freelancer = db.query(User).filter(User.id == freelancer_id).first()
        if not freelancer:
            raise NotFoundError("User not found")

        request = TaskRequest(
            id=new_id(),
            task_id=task_id,
            client_id=client_id,
            freelancer_id=freelancer_id,
            status="pending",
            created_at=datetime.utcnow(),
        )
        db.add(request)
        task.status = "pending"
        task.updated_at = datetime.utcnow()

        log_action(
            db,
            client_id,
            "TASK_REQUEST_CREATE",
            request.id,
            f"Task request sent to {freelancer.full_name} for task: {task.title}",
        )
        self.notifier.notify(
            db,
            freelancer_id,
            "REQUEST_RECEIVED",
            "New Task Request",
            f"You have received a new request for task: {task.title}",
            request.id,
        )
        db.commit()
        return request_to_dict(
            request,
            task=task_to_dict(task),
            freelancer=user_summary(freelancer),
            client=user_summary(task.client),
        )

    def list_pending_for_freelancer(self, db: Session, freelancer_id: str) -> List[Dict[str, Any]]:
        rows = (
            db.query(TaskRequest)
            .options(selectinload(TaskRequest.task), selectinload(TaskRequest.client))
            .filter(TaskRequest.freelancer_id == freelancer_id, TaskRequest.status == "pending")
            .order_by(TaskRequest.created_at.desc())
            .all()
        )
        return [
            request_to_dict(row, task=task_to_dict(row.task), client=user_summary(row.client))
            for row in rows
        ]

    def accept(self, db: Session, request_id: str, freelancer_id: str) -> Dict[str, Any]:
        request = self._get_request(db, request_id)
        if request.freelancer_id != freelancer_id:
            raise ForbiddenError("You can only accept your own requests")
        self._ensure_pending(request)

        task = request.task
        request.status = "accepted"
        task.status = "in_progress"
        task.updated_at = datetime.utcnow()
        open_chat(db, request.client_id, freelancer_id, task.title)

        log_action(db, freelancer_id, "TASK_REQUEST_ACCEPT", request_id, f"Accepted task request for: {task.title}")
        self.notifier.notify(
            db,
            request.client_id,
            "REQUEST_ACCEPTED",
            "Request Accepted",
            f"{request.freelancer.full_name} has accepted your request for task: {task.title}",
            request.id,
        )
        db.commit()
        return {
            "request": request_to_dict(request),
            "chat": {
                "partner_id": request.client_id,
                "partner_name": request.client.full_name,
            },
        }

    def reject(self, db: Session, request_id: str, freelancer_id: str) -> Dict[str, Any]:
        request = self._get_request(db, request_id)
        if request.freelancer_id != freelancer_id:
            raise ForbiddenError("You can only reject your own requests")
        self._ensure_pending(request)

        request.status = "rejected"
        request.task.status = "open"
        request.task.updated_at = datetime.utcnow()
        log_action(
            db, freelancer_id, "TASK_REQUEST_REJECT", request_id, f"Rejected task request for: {request.task.title}"
        )
        db.commit()
        return {"message": "Request rejected successfully"}

    def cancel(self, db: Session, request_id: str, client_id: str) -> Dict[str, Any]:
        request = self._get_request(db, request_id)
        if request.client_id != client_id:
            raise ForbiddenError("You can only cancel your own requests")
        self._ensure_pending(request)

        task = request.task
        task.requests.remove(request)
        task.status = "open"
        task.updated_at = datetime.utcnow()
        log_action(db, client_id, "TASK_REQUEST_CANCEL", request_id, f"Cancelled task request for: {task.title}")
        db.commit()
        return {"message": "Request cancelled successfully"}

    @staticmethod
    def _get_request(db: Session, request_id: str) -> TaskRequest:
        request = (
            db.query(TaskRequest)
            .options(
                selectinload(TaskRequest.task),
                selectinload(TaskRequest.client),
                selectinload(TaskRequest.freelancer),
            )
            .filter(TaskRequest.id == request_id)
            .first()
        )
        if not request:
            raise NotFoundError("Request not found")
        return request

    @staticmethod
    def _ensure_pending(request: TaskRequest) -> None:
        if request.status != "pending":
            raise InvalidStateError("This request has already been processed")
