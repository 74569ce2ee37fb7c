from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from passlib.context import CryptContext

from adventureconnect.config import Settings
from adventureconnect.exceptions import Unauthenticated

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_dummy_hash: Optional[str] = None

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def dummy_verify(password: str) -> None:
    """Spend the same time as a real check when the account does not exist"""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = pwd_context.hash("adventureconnect-dummy-password")
    pwd_context.verify(password, _dummy_hash)

def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` into a JWT that expires after ``expires_delta``"""
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = data.copy()
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str, settings: Settings) -> dict:
    """Decode ``token`` and return its claims with ``user_id`` resolved"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except jwt.PyJWTError:
        raise Unauthenticated()

    subject = payload.get("sub")
    try:
        payload["user_id"] = int(subject)
    except (TypeError, ValueError):
        raise Unauthenticated()
    return payload
