"""
Portbook Backend - Access Token Helpers
=========================================

What:  Issues and verifies the HS256 bearer tokens that guard the API.
How:   PyJWT with the shared JWT_SECRET from settings. Tokens are normally
       issued by the external login service; `create_access_token` exists
       for the seed CLI and the test-suite.
"""

import time
from typing import Any, Dict, Optional

import jwt

from app.config import settings
from app.exceptions import AuthError


def create_access_token(
    subject: str,
    user: Optional[Dict[str, Any]] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    issued_at = int(time.time())
    lifetime = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    payload: Dict[str, Any] = {
        "sub": str(subject),
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + lifetime * 60,
    }
    if user is not None:
        payload["user"] = user
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthError: empty, expired, tampered or non-access token
    """
    raw = (token or "").strip()
    if not raw:
        raise AuthError("No token provided, authorization denied")

    try:
        payload = jwt.decode(raw, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthError("Token is not valid", context={"reason": str(exc)}) from exc

    # Login-service tokens may omit "type"; a present one must be "access"
    token_type = payload.get("type", "access")
    if token_type != "access":
        raise AuthError("Token is not valid", context={"reason": f"token type '{token_type}'"})
    return payload
