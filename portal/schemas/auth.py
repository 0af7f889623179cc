from typing import Optional

from pydantic import ConfigDict, Field

from .base import ApiModel, InputModel


class LoginRequest(InputModel):
    # Passwords are compared as typed
    model_config = ConfigDict(str_strip_whitespace=False)

    user_id: str = Field(max_length=100)
    password: str


class SessionUser(ApiModel):
    id: int
    user_id: str


class LoginResponse(ApiModel):
    success: bool = True
    user: SessionUser


class AuthStatus(ApiModel):
    authenticated: bool
    user: Optional[SessionUser] = None
