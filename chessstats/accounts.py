"""
Accounts and email/password sessions.

Accounts live in `accounts/{uid}`; password hashes live separately in
`credentials/{email}` and never leave this module. Sessions are HS256 JWTs;
logging out records the token id in `revoked_sessions`.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from .db.store import DocumentStore

logger = logging.getLogger(__name__)

ACCOUNTS_COLLECTION = "accounts"
CREDENTIALS_COLLECTION = "credentials"
REVOKED_COLLECTION = "revoked_sessions"

MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 260_000
JWT_ALGORITHM = "HS256"

INVALID_CREDENTIAL = "auth/invalid-credential"
EMAIL_IN_USE = "auth/email-already-in-use"
WEAK_PASSWORD = "auth/weak-password"
INVALID_EMAIL = "auth/invalid-email"

AUTH_ERROR_MESSAGES = {
    INVALID_CREDENTIAL: "Incorrect credentials. Please check your email and password.",
    EMAIL_IN_USE: "This email address is already registered.",
    WEAK_PASSWORD: f"The password must be at least {MIN_PASSWORD_LENGTH} characters long.",
    INVALID_EMAIL: "Please enter a valid email address.",
}
GENERIC_AUTH_MESSAGE = "Something went wrong. Please try again."


class AuthError(Exception):
    """Authentication failure identified by a provider-style code."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code

    @property
    def message(self) -> str:
        return auth_error_message(self.code)


def auth_error_message(code: str) -> str:
    return AUTH_ERROR_MESSAGES.get(code, GENERIC_AUTH_MESSAGE)


@dataclass
class Session:
    uid: str
    token: str
    expires_at: datetime


def _hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS).hex()


class AuthService:
    """Issues and verifies sessions for accounts stored in a DocumentStore."""

    def __init__(self, store: DocumentStore, secret: str, ttl_minutes: int = 60 * 24 * 7):
        self.store = store
        self.secret = secret
        self.ttl = timedelta(minutes=ttl_minutes)

    def _issue(self, uid: str, email: str) -> Session:
        expires_at = datetime.now(timezone.utc) + self.ttl
        token = jwt.encode(
            {"sub": uid, "email": email, "jti": uuid.uuid4().hex, "exp": expires_at},
            self.secret,
            algorithm=JWT_ALGORITHM,
        )
        return Session(uid=uid, token=token, expires_at=expires_at)

    async def register(self, email: str, password: str, username: str) -> Session:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise AuthError(INVALID_EMAIL)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(WEAK_PASSWORD)
        if await self.store.get(CREDENTIALS_COLLECTION, email) is not None:
            raise AuthError(EMAIL_IN_USE)

        uid = uuid.uuid4().hex
        salt = os.urandom(16)
        await self.store.set(CREDENTIALS_COLLECTION, email, {
            "uid": uid,
            "salt": salt.hex(),
            "password_hash": _hash_password(password, salt),
        })
        await self.store.set(ACCOUNTS_COLLECTION, uid, {
            "uid": uid,
            "email": email,
            "username": username,
            "created_at": int(time.time() * 1000),
        })
        logger.info("Registered account %s", uid)
        return self._issue(uid, email)

    async def login(self, email: str, password: str) -> Session:
        email = (email or "").strip().lower()
        creds = await self.store.get(CREDENTIALS_COLLECTION, email)
        if creds is None:
            raise AuthError(INVALID_CREDENTIAL)

        expected = creds.get("password_hash", "")
        actual = _hash_password(password or "", bytes.fromhex(creds.get("salt", "")))
        if not hmac.compare_digest(expected, actual):
            raise AuthError(INVALID_CREDENTIAL)

        return self._issue(creds["uid"], email)

    def _decode(self, token: str) -> Optional[dict[str, Any]]:
        try:
            return jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except JWTError:
            return None

    async def logout(self, token: str) -> None:
        payload = self._decode(token)
        if payload is None or not payload.get("jti"):
            return
        await self.store.set(REVOKED_COLLECTION, payload["jti"], {"uid": payload.get("sub")})

    async def verify(self, token: str) -> Optional[str]:
        """uid for a live session token, None otherwise."""
        payload = self._decode(token)
        if payload is None:
            return None
        jti = payload.get("jti")
        if jti and await self.store.get(REVOKED_COLLECTION, jti) is not None:
            return None
        return payload.get("sub")


async def get_user_account(store: DocumentStore, uid: str) -> Optional[dict[str, Any]]:
    return await store.get(ACCOUNTS_COLLECTION, uid)


async def update_chess_username(store: DocumentStore, uid: str, chess_username: str) -> None:
    await store.set(ACCOUNTS_COLLECTION, uid, {"chess_username": chess_username}, merge=True)


async def update_display_name(store: DocumentStore, uid: str, username: str) -> None:
    await store.set(ACCOUNTS_COLLECTION, uid, {"username": username}, merge=True)
