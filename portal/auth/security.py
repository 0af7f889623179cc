import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, Response, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..logging import structlog
from ..models.models import User, UserSession
from ..schemas.auth import SessionUser


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
log = structlog.get_logger(__name__)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, stored: str) -> bool:
    # Legacy rows hold the password as typed; newer ones may hold a passlib hash
    if not stored:
        return False
    if pwd_context.identify(stored):
        try:
            return pwd_context.verify(plain, stored)
        except ValueError:
            return False
    return secrets.compare_digest(plain.encode("utf-8"), stored.encode("utf-8"))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def create_session_token(db: Session, user: User) -> str:
    now = datetime.now(tz=timezone.utc)
    expires = now + timedelta(seconds=settings.session_ttl_seconds)
    jti = uuid.uuid4().hex
    db.add(UserSession(id=jti, user_pk=user.id, created_at=now, expires_at=expires))
    db.commit()
    payload = {
        "sub": str(user.id),
        "uid": user.user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
        "jti": jti,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])
    except jwt.ExpiredSignatureError:
        log.info("session_expired")
        return None
    except jwt.InvalidTokenError:
        log.info("session_invalid")
        return None


def revoke_session_token(db: Session, token: Optional[str]) -> bool:
    if not token:
        return False
    payload = decode_token(token)
    if not payload or not payload.get("jti"):
        return False
    count = db.query(UserSession).filter(UserSession.id == payload["jti"]).delete(synchronize_session=False)
    db.commit()
    return count > 0


def revoke_user_sessions(db: Session, user_pk: int) -> int:
    """End every live session of one user, e.g. after a password reset."""
    count = db.query(UserSession).filter(UserSession.user_pk == user_pk).delete(synchronize_session=False)
    db.commit()
    log.info("user_sessions_revoked", user_pk=user_pk, count=count)
    return count


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.session_cookie_name, httponly=True, samesite="lax")


def get_session_user(request: Request, db: Session = Depends(get_db)) -> Optional[SessionUser]:
    """Resolve the logged-in user for this request, or None. Result is kept on request.state.user."""
    request.state.user = None
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    payload = decode_token(token)
    if not payload:
        return None
    sess = db.query(UserSession).filter(UserSession.id == payload.get("jti")).first()
    if sess is None or _as_utc(sess.expires_at) <= datetime.now(timezone.utc):
        return None
    # The account may have been removed since login
    row = db.query(User).filter(User.id == sess.user_pk).first()
    if row is None or str(row.id) != payload.get("sub"):
        return None
    user = SessionUser(id=row.id, user_id=row.user_id)
    request.state.user = user
    return user


def get_current_user(user: Optional[SessionUser] = Depends(get_session_user)) -> SessionUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user
