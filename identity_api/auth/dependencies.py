# identity_api/auth/dependencies.py
from typing import Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from identity_api.database import get_db
from identity_api.errors import Unauthorized
from identity_api.models.revoked_token import RevokedToken
from identity_api.models.user import User
from identity_api.utils.token import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> dict:
    if credentials is None:
        raise Unauthorized("Token not provided")

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub") or not payload.get("jti"):
        raise Unauthorized("Invalid token")

    revoked = db.query(RevokedToken).filter(RevokedToken.jti == payload["jti"]).first()
    if revoked:
        logger.warning(f"Revoked token presented for user {payload['sub']}")
        raise Unauthorized("Token has been revoked")

    return payload


def get_current_user(
    claims: dict = Depends(get_token_claims),
    db: Session = Depends(get_db)
) -> User:
    user = db.query(User).filter(User.id == claims["sub"]).first()
    if user is None:
        raise Unauthorized("User not found")
    return user
