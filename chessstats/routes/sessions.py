"""
Session routes – register, log in, log out with email and password.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from chessstats.accounts import INVALID_CREDENTIAL, AuthError, AuthService, Session
from chessstats.auth import require_token
from chessstats.deps import get_auth_service

router = APIRouter()


class RegisterRequest(BaseModel):
    email: str
    password: str
    username: str


class LoginRequest(BaseModel):
    email: str
    password: str


class SessionOut(BaseModel):
    uid: str
    token: str
    expires_at: str


def _session_out(session: Session) -> SessionOut:
    return SessionOut(uid=session.uid, token=session.token, expires_at=session.expires_at.isoformat())


def _auth_http_error(err: AuthError) -> HTTPException:
    code = status.HTTP_401_UNAUTHORIZED if err.code == INVALID_CREDENTIAL else status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail={"code": err.code, "message": err.message})


@router.post("/register", response_model=SessionOut)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        session = await auth_service.register(body.email, body.password, body.username)
    except AuthError as e:
        raise _auth_http_error(e)
    return _session_out(session)


@router.post("/login", response_model=SessionOut)
async def login(
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        session = await auth_service.login(body.email, body.password)
    except AuthError as e:
        raise _auth_http_error(e)
    return _session_out(session)


@router.post("/logout")
async def logout(
    token: str = Depends(require_token),
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.logout(token)
    return {"logged_out": True}
