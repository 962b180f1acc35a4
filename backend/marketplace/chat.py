"""
Chat persistence: direct messages between two users and conversation lists.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, selectinload

from database import Message, User, new_id

from .errors import InvalidInputError, NotFoundError
from .serializers import message_to_dict, user_summary

logger = logging.getLogger("gigboard.chat")


def open_chat(db: Session, client_id: str, freelancer_id: str, task_title: str) -> Message:
    """System message that starts the conversation for a new engagement."""
    message = Message(
        id=new_id(),
        sender_id=client_id,
        receiver_id=freelancer_id,
        content=(
            "This chat has been started since both participants decided to "
            f"work together on {task_title}"
        ),
        is_system=True,
        created_at=datetime.utcnow(),
    )
    db.add(message)
    return message


class ChatService:
    def send_message(self, db: Session, sender_id: str, receiver_id: str, content: str) -> Dict[str, Any]:
        if sender_id == receiver_id:
            raise InvalidInputError("You cannot send a message to yourself")
        receiver = db.query(User).filter(User.id == receiver_id).first()
        if not receiver:
            raise NotFoundError("User not found")

        message = Message(
            id=new_id(),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            is_system=False,
            created_at=datetime.utcnow(),
        )
        db.add(message)
        db.commit()
        return message_to_dict(
            message,
            sender=user_summary(message.sender),
            receiver=user_summary(receiver),
        )

    def history(self, db: Session, user_id: str, partner_id: str) -> List[Dict[str, Any]]:
        rows = (
            db.query(Message)
            .options(selectinload(Message.sender))
            .filter(
                or_(
                    and_(Message.sender_id == user_id, Message.receiver_id == partner_id),
                    and_(Message.sender_id == partner_id, Message.receiver_id == user_id),
                )
            )
            .order_by(Message.created_at.asc())
            .all()
        )
        return [message_to_dict(row, sender=user_summary(row.sender)) for row in rows]

    def conversations(self, db: Session, user_id: str) -> List[Dict[str, Any]]:
        rows = (
            db.query(Message)
            .options(selectinload(Message.sender), selectinload(Message.receiver))
            .filter(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .order_by(Message.created_at.desc())
            .all()
        )
        conversations: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            partner = row.receiver if row.sender_id == user_id else row.sender
            if partner is None or partner.id in conversations:
                continue
            conversations[partner.id] = {
                "partner": user_summary(partner),
                "last_message": message_to_dict(row),
            }
        return list(conversations.values())
