"""
Dashboard Auth — bearer JWT verification and shop (tenant) resolution.

The dashboard frontend sends the user's access token as a Bearer token.
We verify it (HS256, shared secret), then look up the user's shop in
shop_users. Every dashboard query is scoped to that shop.

With auth disabled (local demo), every request is the demo shop's owner.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt
from fastapi import HTTPException, Request

from app.config import settings
from app.models.calls import DashboardUser
from app.services.supabase import get_first_or_none, get_supabase_client

logger = logging.getLogger(__name__)


def _demo_user() -> DashboardUser:
    return DashboardUser(id="demo", shop_id=settings.demo_shop_id, role="owner")


async def verify_dashboard_user(request: Request) -> DashboardUser:
    """FastAPI dependency: verify the JWT and return the user's shop scope.

    Raises 401 on missing/invalid token, 403 when the user has no shop.
    """
    if not settings.auth_enabled:
        return _demo_user()

    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="No authorization token provided")

    token = auth_header[7:]  # Strip "Bearer "

    if not settings.jwt_secret:
        logger.error("Dashboard auth: JWT_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Internal error")

    try:
        payload: dict[str, Any] = jwt.decode(
            token, settings.jwt_secret, algorithms=["HS256"]
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning("Dashboard auth: invalid token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: no subject")

    try:
        sb = await get_supabase_client()
        row = await get_first_or_none(
            sb.table("shop_users").select("shop_id, role").eq("user_id", user_id)
        )
    except Exception:
        logger.exception("Dashboard auth: database error during shop lookup")
        raise HTTPException(status_code=500, detail="Internal error")

    if row is None:
        raise HTTPException(status_code=403, detail="No shop linked to this account")

    return DashboardUser(id=user_id, shop_id=row["shop_id"], role=row.get("role") or "member")
