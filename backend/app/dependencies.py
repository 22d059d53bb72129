"""
Auth dependencies for protected routes.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header

from app.exceptions import AuthError
from app.security import decode_access_token


def extract_bearer_token(authorization: Optional[str]) -> str:
    if authorization is None or not authorization.strip():
        raise AuthError("No authorization header, access denied")

    if not authorization.startswith("Bearer "):
        raise AuthError("Invalid token format, use 'Bearer <token>'")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthError("No token provided, authorization denied")
    return token


async def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    return extract_bearer_token(authorization)


async def get_current_user(token: str = Depends(get_bearer_token)) -> Dict[str, Any]:
    # Tokens from the login service carry the user under "user"
    payload = decode_access_token(token)
    return payload.get("user") or payload
