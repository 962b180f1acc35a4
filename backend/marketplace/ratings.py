"""
Ratings: clients score freelancers 1-5, one rating per (client, freelancer) pair.

The freelancer's ``rating`` is kept equal to the average score and
``completed_jobs`` to the number of ratings received, which is what the
recommendation scorer reads.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from database import Rating, User, new_id

from .errors import InvalidInputError
from .serializers import rating_to_dict, user_summary

logger = logging.getLogger("gigboard.ratings")

MIN_SCORE = 1
MAX_SCORE = 5


def refresh_freelancer_rating(db: Session, freelancer_id: str) -> Optional[float]:
    db.flush()
    average, count = (
        db.query(func.avg(Rating.score), func.count(Rating.id))
        .filter(Rating.freelancer_id == freelancer_id)
        .one()
    )
    freelancer = db.query(User).filter(User.id == freelancer_id).first()
    if freelancer is not None:
        freelancer.rating = float(average) if average is not None else None
        freelancer.completed_jobs = int(count or 0)
    return freelancer.rating if freelancer is not None else None


class RatingService:
    def rate(
        self,
        db: Session,
        client_id: str,
        freelancer_id: str,
        score: int,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        if score < MIN_SCORE or score > MAX_SCORE:
            raise InvalidInputError(f"Rating score must be between {MIN_SCORE} and {MAX_SCORE}")

        if not db.query(User).filter(User.id == freelancer_id).first():
            raise InvalidInputError("User not found")
        if not db.query(User).filter(User.id == client_id).first():
            raise InvalidInputError("User not found")

        rating = (
            db.query(Rating)
            .filter(Rating.client_id == client_id, Rating.freelancer_id == freelancer_id)
            .first()
        )
        if rating:
            rating.score = score
            rating.comment = comment
        else:
            rating = Rating(
                id=new_id(),
                client_id=client_id,
                freelancer_id=freelancer_id,
                score=score,
                comment=comment,
                created_at=datetime.utcnow(),
            )
            db.add(rating)

        average = refresh_freelancer_rating(db, freelancer_id)
        db.commit()
        logger.info("[Rating] %s rated %s: %s (avg=%s)", client_id, freelancer_id, score, average)
        return rating_to_dict(rating)

    def list_for_freelancer(self, db: Session, freelancer_id: str) -> List[Dict[str, Any]]:
        rows = (
            db.query(Rating)
            .options(selectinload(Rating.client))
            .filter(Rating.freelancer_id == freelancer_id)
            .order_by(Rating.created_at.desc())
            .all()
        )
        return [rating_to_dict(row, client=user_summary(row.client)) for row in rows]

    def check_exists(self, db: Session, client_id: str, freelancer_id: str) -> Dict[str, Any]:
        rating = (
            db.query(Rating)
            .filter(Rating.client_id == client_id, Rating.freelancer_id == freelancer_id)
            .first()
        )
        return {"exists": rating is not None, "rating": rating_to_dict(rating) if rating else None}
