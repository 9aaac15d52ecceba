"""
Bearer token signing and verification (HS256 via python-jose).

Payload claims: `id` (user id), `email`, `exp` (issue time + JWT_EXPIRES_DAYS).
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from app.config import settings

ALGORITHM = "HS256"


def sign_token(user_id: int, email: str, expires_in: Optional[timedelta] = None) -> str:
    lifetime = expires_in if expires_in is not None else timedelta(days=settings.jwt_expires_days)
    payload = {
        "id": user_id,
        "email": email,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Decode a token and check its signature and expiry.

    Raises:
        jose.JWTError: bad signature, malformed token, or expired
            (ExpiredSignatureError is a JWTError)
    """
    return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
