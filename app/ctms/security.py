from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request

from app.ctms.models import User

TOKEN_HEADER = "token"
_ALGORITHM = "HS256"


class TokenError(Exception):
    pass


def issue_token(user: User, *, secret: str, ttl_hours: int) -> str:
    """Sign a JWT for the user. Roles are included for the client; the server re-reads them from the DB."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "roles": user.role_keys,
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def decode_token(token: str, *, secret: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token expired.") from e
    except jwt.InvalidTokenError as e:
        raise TokenError("Invalid token.") from e
    if not payload.get("sub"):
        raise TokenError("Invalid token.")
    return payload


def token_from_request(req: Request) -> str | None:
    """The client sends the token in a custom `token` header, not Authorization: Bearer."""
    token = (req.headers.get(TOKEN_HEADER) or "").strip()
    return token or None
