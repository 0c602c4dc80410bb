"""Password hashing and JWT helpers."""
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from starlette.concurrency import run_in_threadpool

from labeldesk.core.config import app_settings

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


class TokenError(Exception):
    """Raised when a token cannot be decoded or has expired."""


def parse_expiry(value: str) -> timedelta:
    """Parse ``"3600"``, ``"30m"``, ``"12h"`` or ``"7d"`` into a timedelta."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid token expiry: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])


def _hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=app_settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


async def hash_password(password: str) -> str:
    # CPU-bound
    return await run_in_threadpool(_hash_password, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(_check_password, password, password_hash)


def create_access_token(user_id: Any, username: str, role: str) -> str:
    """Sign a token carrying the caller's identity claims."""
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(user_id),
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + parse_expiry(app_settings.jwt_expires_in),
    }
    return jwt.encode(payload, app_settings.jwt_secret, algorithm=app_settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(
            token,
            app_settings.jwt_secret,
            algorithms=[app_settings.jwt_algorithm],
            options={"require": ["exp", "id", "role"]},
        )
    except jwt.PyJWTError as e:
        raise TokenError(str(e)) from e
