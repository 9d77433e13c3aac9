"""
Supabase Service — shop membership lookups and call persistence.

The client is created on first use, so the API runs against mock records
without a Supabase project.
"""

import logging
from typing import Any

from supabase import acreate_client, AsyncClient

from app.config import settings

logger = logging.getLogger(__name__)

_client: AsyncClient | None = None


def supabase_configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_service_key)


async def get_supabase_client() -> AsyncClient:
    """Shared async client; RuntimeError when no project is configured."""
    global _client
    if _client is not None:
        return _client

    if not supabase_configured():
        raise RuntimeError("Supabase is not configured (SUPABASE_URL, SUPABASE_SERVICE_KEY)")
    try:
        _client = await acreate_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        logger.error("Failed to create Supabase client for %s: %s", settings.supabase_url, e)
        raise
    logger.info("Supabase client ready")
    return _client


async def close_supabase() -> None:
    """Drop the shared client on shutdown."""
    global _client
    _client = None


async def get_first_or_none(query: Any) -> dict[str, Any] | None:
    """First row of a select query, or None."""
    result = await query.limit(1).execute()
    rows: list[dict[str, Any]] = result.data or []
    return rows[0] if rows else None
