"""Request dependencies shared by the route groups."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Header

from ..config import settings
from ..db.supabase import require_client
from ..errors import AuthError

logger = logging.getLogger(__name__)

SERVICE_ROLE = "service_role"


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthError("Missing authorization header", code="missing_authorization")
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        raise AuthError("Missing authorization header", code="missing_authorization")
    return token


def _user_id_for(token: str) -> str:
    client = require_client()
    try:
        response = client.auth.get_user(token)
    except Exception as exc:
        logger.warning(f"Token validation failed: {exc}")
        raise AuthError("Invalid authorization token", code="invalid_token") from exc
    user = getattr(response, "user", None)
    if user is None:
        raise AuthError("Invalid authorization token", code="invalid_token")
    return str(user.id)


def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> str:
    """Id of the signed-in user behind the bearer token."""
    return _user_id_for(_bearer_token(authorization))


def get_caller_id(authorization: Optional[str] = Header(default=None)) -> str:
    """Like ``get_current_user_id`` but also admits the service-role key used by automated jobs."""
    token = _bearer_token(authorization)
    if settings.supabase_key and hmac.compare_digest(token.encode(), settings.supabase_key.encode()):
        return SERVICE_ROLE
    return _user_id_for(token)
