"""
Login audit trail.
Append-only record of every login attempt, successful or not.
"""
from typing import Optional

from sqlalchemy.orm import Session

from ..models.models import LoginLog


LOGIN_SUCCESS = "success"
LOGIN_FAILED = "failed"


def create_login_log(db: Session, user_id: Optional[str], status: str) -> LoginLog:
    """
    Append a login attempt.

    Args:
        db: Database session
        user_id: Login identifier as typed by the caller (may not exist)
        status: LOGIN_SUCCESS or LOGIN_FAILED

    Returns:
        Created LoginLog object
    """
    entry = LoginLog(user_id=(user_id or "")[:100] or None, status=status)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def get_login_logs(
    db: Session,
    user_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> list:
    query = db.query(LoginLog)
    if user_id:
        query = query.filter(LoginLog.user_id == user_id)
    query = query.order_by(LoginLog.login_time.desc(), LoginLog.id.desc())
    return query.limit(limit).offset(offset).all()
