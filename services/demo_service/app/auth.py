"""
Requester identification - JWT bearer tokens issued by the presentation layer.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 8

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def create_requester_token(email: str, secret: str, expires_hours: int = JWT_EXPIRATION_HOURS) -> str:
    """Create a signed token identifying the requesting operator."""
    now = datetime.utcnow()
    payload = {
        "sub": email,
        "email": email,
        "exp": now + timedelta(hours=expires_hours),
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_requester_token(token: str, secret: str) -> Optional[str]:
    """
    Verify a requester token and return the requester email.
    Returns None if the token is invalid.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return payload.get("email") or payload.get("sub")


def get_requester_email(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """
    FastAPI dependency returning the requester email, or None.
    Operations report a missing requester themselves, so this never raises.
    """
    if credentials is None:
        return None
    if not settings.requester_jwt_secret:
        logger.error("❌ REQUESTER_JWT_SECRET is not configured; cannot verify requesters")
        return None
    return verify_requester_token(credentials.credentials, settings.requester_jwt_secret)
