"""
Notifier – persists in-app notifications and mirrors them to an optional webhook.

Supports:
- Database rows polled by the frontend (always on)
- Webhook (Discord/Telegram/Slack) via NOTIFICATION_WEBHOOK_URL

Webhooks are queued on the session and sent only after it commits.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy import event
from sqlalchemy.orm import Session

from config import NOTIFICATION_WEBHOOK_TIMEOUT_SECONDS, NOTIFICATION_WEBHOOK_URL
from database import Notification, new_id

from .errors import ForbiddenError, NotFoundError
from .serializers import notification_to_dict

logger = logging.getLogger("gigboard.notifier")

_PENDING_WEBHOOKS = "pending_webhooks"


class Notifier:
    """
    Creates notifications for marketplace events.

    Usage:
        notifier = get_notifier()
        notifier.notify(db, user_id, "APPLICATION_RECEIVED", "New Application", "...", application.id)
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = NOTIFICATION_WEBHOOK_TIMEOUT_SECONDS):
        self.webhook_url = NOTIFICATION_WEBHOOK_URL if webhook_url is None else webhook_url
        self.timeout = timeout

    def notify(
        self,
        db: Session,
        user_id: str,
        type: str,
        title: str,
        message: str,
        related_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            id=new_id(),
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            related_id=related_id,
            is_read=False,
            created_at=datetime.utcnow(),
        )
        db.add(notification)
        logger.info("[Notify] %s -> %s: %s", type, user_id, title)

        if self.webhook_url:
            self._queue_webhook(db, notification)

        return notification

    def list_for_user(self, db: Session, user_id: str) -> list[dict]:
        rows = (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())
            .all()
        )
        return [notification_to_dict(row) for row in rows]

    def mark_read(self, db: Session, notification_id: str, user_id: str) -> dict:
        notification = db.query(Notification).filter(Notification.id == notification_id).first()
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise ForbiddenError("You can only update your own notifications")
        notification.is_read = True
        db.commit()
        return notification_to_dict(notification)

    def delete(self, db: Session, notification_id: str, user_id: str) -> Optional[dict]:
        notification = db.query(Notification).filter(Notification.id == notification_id).first()
        if not notification:
            return None
        if notification.user_id != user_id:
            raise ForbiddenError("You can only delete your own notifications")
        payload = notification_to_dict(notification)
        db.delete(notification)
        db.commit()
        return payload

    def _queue_webhook(self, db: Session, notification: Notification) -> None:
        if "discord" in self.webhook_url:
            payload = self._format_discord(notification)
        elif "telegram" in self.webhook_url:
            payload = self._format_telegram(notification)
        else:
            # Generic webhook (Slack-compatible)
            payload = self._format_generic(notification)

        if not event.contains(db, "after_commit", _send_pending_webhooks):
            event.listen(db, "after_commit", _send_pending_webhooks)
            event.listen(db, "after_transaction_end", _drop_pending_webhooks)
        db.info.setdefault(_PENDING_WEBHOOKS, []).append((self, notification.id, payload))

    def _send_webhook(self, notification_id: str, payload: dict) -> None:
        try:
            response = httpx.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            logger.debug("[Notify] Webhook sent for %s", notification_id)
        except Exception as exc:
            logger.warning("[Notify] Webhook failed for %s: %s", notification_id, exc)

    @staticmethod
    def _format_discord(n: Notification) -> dict:
        return {
            "content": None,
            "embeds": [{
                "title": n.title,
                "description": n.message[:500],
                "fields": [
                    {"name": "Type", "value": n.type, "inline": True},
                    {"name": "User", "value": n.user_id, "inline": True},
                ],
                "footer": {"text": f"Ref: {n.related_id or '-'}"},
                "timestamp": n.created_at.isoformat(),
            }],
        }

    @staticmethod
    def _format_telegram(n: Notification) -> dict:
        text = (
            f"*{n.title}*\n\n"
            f"{n.message[:500]}\n"
            f"Type: `{n.type}`"
        )
        return {"text": text, "parse_mode": "Markdown"}

    @staticmethod
    def _format_generic(n: Notification) -> dict:
        return {
            "text": f"{n.title}: {n.message[:200]}",
            "blocks": [{
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"*{n.title}*\n{n.message[:500]}\n_{n.type}_",
                },
            }],
        }


def _send_pending_webhooks(session: Session) -> None:
    for notifier, notification_id, payload in session.info.pop(_PENDING_WEBHOOKS, []):
        notifier._send_webhook(notification_id, payload)


def _drop_pending_webhooks(session: Session, transaction) -> None:
    # after_commit has already drained the queue when the transaction committed
    if transaction.parent is not None:
        return
    dropped = session.info.pop(_PENDING_WEBHOOKS, [])
    if dropped:
        logger.info("[Notify] Dropped %d webhook(s) without commit", len(dropped))


# Singleton instance
_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = Notifier()
    return _notifier
