# identity_api/utils/token.py
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import logging
import secrets
import uuid

from jose import jwt, JWTError

from identity_api.config import settings

logger = logging.getLogger(__name__)

TOKEN_TYPE = "bearer"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token
    """
    to_encode = data.copy()
    now = datetime.utcnow()

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "type": "access"
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT access token, None when invalid or expired
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}")
        return None

    if payload.get("type") != "access":
        return None
    return payload


def issue_session_token(user) -> dict:
    """Bearer credential for a verified user."""
    ttl_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    access_token = create_access_token(
        data={"sub": user.id, "role": user.role},
        expires_delta=timedelta(minutes=ttl_minutes),
    )
    return {
        "access_token": access_token,
        "token_type": TOKEN_TYPE,
        "expires_in": ttl_minutes * 60,
    }


# -------------------- EXCHANGE TOKENS --------------------
def generate_exchange_token() -> str:
    return secrets.token_urlsafe(32)


def hash_exchange_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
