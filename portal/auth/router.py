from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..logging import structlog
from ..schemas.auth import AuthStatus, LoginRequest, LoginResponse, SessionUser
from ..services.audit import LOGIN_FAILED, LOGIN_SUCCESS, create_login_log
from ..services.store import UserStore
from .security import (
    clear_session_cookie,
    create_session_token,
    get_session_user,
    revoke_session_token,
    set_session_cookie,
    verify_password,
)


router = APIRouter(prefix="/api", tags=["auth"])
log = structlog.get_logger(__name__)


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = UserStore(db).get_user_by_login(req.user_id)
    if not user or not verify_password(req.password, user.password):
        create_login_log(db, req.user_id, LOGIN_FAILED)
        log.warning("login_failed", user_id=req.user_id)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_session_token(db, user)
    create_login_log(db, user.user_id, LOGIN_SUCCESS)
    set_session_cookie(response, token)
    log.info("login_succeeded", user_id=user.user_id)
    return LoginResponse(user=SessionUser(id=user.id, user_id=user.user_id))


@router.post("/logout")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    revoke_session_token(db, request.cookies.get(settings.session_cookie_name))
    clear_session_cookie(response)
    return {"success": True}


@router.get("/auth/status", response_model=AuthStatus, response_model_exclude_none=True)
def auth_status(user: Optional[SessionUser] = Depends(get_session_user)):
    if user is None:
        return AuthStatus(authenticated=False)
    return AuthStatus(authenticated=True, user=user)
