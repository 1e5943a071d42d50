# harada/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from harada.config import settings
from harada.core.errors import NotAuthenticated

ACCESS = "access"
REFRESH = "refresh"

def _create_token(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({
        "exp": datetime.now(timezone.utc) + expires_delta,
        "type": token_type,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _create_token(
        data, ACCESS, expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    return _create_token(
        data, REFRESH, expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )

def decode_token(token: str, expected_type: str = ACCESS) -> int:
    """Return the user id carried by a valid token of the expected type."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        raise NotAuthenticated("Could not validate credentials") from e

    user_id = payload.get("sub")
    if user_id is None or payload.get("type") != expected_type:
        raise NotAuthenticated("Could not validate credentials")
    try:
        return int(user_id)
    except ValueError as e:
        raise NotAuthenticated("Could not validate credentials") from e
