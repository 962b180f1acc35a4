"""
Action log writer shared by the workflow services.

Entries join the caller's unit of work, so an action and its audit row are
committed (or rolled back) together.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from database import ActionLog

logger = logging.getLogger("gigboard.activity")


def log_action(
    db: Session,
    user_id: str,
    action: str,
    target_id: Optional[str] = None,
    details: Optional[str] = None,
) -> ActionLog:
    entry = ActionLog(
        user_id=user_id,
        action=action,
        target_id=target_id,
        details=details,
        created_at=datetime.utcnow(),
    )
    db.add(entry)
    logger.info("[Activity] %s by %s on %s", action, user_id, target_id or "-")
    return entry
