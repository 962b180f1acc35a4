"""
Request-scoped FastAPI dependencies.

The acting user arrives in the ``X-User-Id`` header, set by the upstream
gateway once the caller is authenticated.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from database import User, get_db


def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    user = db.query(User).filter(User.id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    if user.is_banned:
        raise HTTPException(status_code=403, detail="Your account has been banned")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.user_type != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
