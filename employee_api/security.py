# security.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security.utils import get_authorization_scheme_param
from jose import JWTError, jwt
from starlette.concurrency import run_in_threadpool

from .config import Settings
from .exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

# Verified against when the login identifier is unknown so both failure paths cost one bcrypt check
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode()


# --- Passwords ---

def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(), (hashed_password or _DUMMY_HASH).encode())
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password_async(password: str) -> str:
    return await run_in_threadpool(get_password_hash, password)


async def verify_password_async(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Always runs a full bcrypt check; a missing hash never verifies."""
    ok = await run_in_threadpool(verify_password, plain_password, hashed_password)
    return ok and hashed_password is not None


# --- Tokens ---

def create_access_token(subject: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode = {"sub": str(subject), "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Returns the token subject (user id) or raises UnauthorizedError."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise UnauthorizedError("Invalid token")
    subject = payload.get("sub")
    if not subject:
        raise UnauthorizedError("Invalid token payload")
    return subject


# --- Dependencies ---

def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


async def get_optional_user(
        request: Request,
        settings: Settings = Depends(get_settings_dep)
) -> Optional[str]:
    """
    Parses a bearer token when one is sent.

    Without REQUIRE_AUTH a missing or invalid token is tolerated and the
    request proceeds anonymously (returns None).
    """
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "bearer" or not token:
        if settings.require_auth:
            raise UnauthorizedError("Not authenticated")
        return None

    try:
        return decode_access_token(token, settings)
    except UnauthorizedError as exc:
        if settings.require_auth:
            raise
        logger.debug(f"Ignoring bearer token: {exc.message}")
        return None
