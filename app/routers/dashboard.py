"""
Dashboard Router — authenticated endpoints for the AI Receptionist dashboard.

Endpoints:
  GET  /api/calls                 — Normalized call list (filterable)
  GET  /api/calls/{id}            — Single call
  GET  /api/assistants            — Assistants on the provider account
  GET  /api/test-connection       — Check the record source is reachable
  GET  /api/dashboard             — Calls + metrics + charts
  GET  /api/dashboard/metrics     — KPI cards
  GET  /api/dashboard/charts      — Chart breakdowns
  POST /api/dashboard/refresh     — Drop cached dashboards, rebuild
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import settings
from app.models.calls import CallListResponse, CallQuery, CallRecord, DashboardUser
from app.models.dashboard import ChartData, DashboardMetrics, DashboardSnapshot
from app.services.analytics.auth import verify_dashboard_user
from app.services.analytics.cache import TTLCache, get_dashboard_cache
from app.services.analytics.dashboard import invalidate_dashboard, load_dashboard
from app.services.analytics.normalizer import (
    InvalidRecord,
    normalize_call,
    normalize_calls,
)
from app.services.analytics.rate_limiter import get_rate_limiter
from app.services.analytics.sources import RecordSource, get_record_source
from app.services.analytics.store import CallStore

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# DEPENDENCIES
# =============================================================================


async def _rate_limited_user(
    user: DashboardUser = Depends(verify_dashboard_user),
) -> DashboardUser:
    """Authenticate, then rate limit per user: settings.rate_limit_rpm req/min."""
    limiter = get_rate_limiter()
    key = f"{user.shop_id}:{user.id}"
    if not limiter.check(key, settings.rate_limit_rpm):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(limiter.retry_after(key))},
        )
    return user


def get_call_store() -> CallStore | None:
    """Call store when persistence is enabled, else None."""
    return CallStore() if settings.persist_calls else None


def _call_query(
    assistant_id: str | None = Query(default=None, alias="assistantId"),
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
) -> CallQuery:
    return CallQuery(
        assistant_id=assistant_id,
        limit=limit,
        offset=offset,
        start_date=start_date,
        end_date=end_date,
    )


# =============================================================================
# CALLS
# =============================================================================


@router.get("/calls")
async def list_calls(
    user: DashboardUser = Depends(_rate_limited_user),
    query: CallQuery = Depends(_call_query),
    source: RecordSource = Depends(get_record_source),
    store: CallStore | None = Depends(get_call_store),
) -> CallListResponse:
    """List normalized calls for the user's shop."""
    raws = await source.list_calls(query)
    batch = normalize_calls(raws)

    if store is not None:
        await store.upsert_calls(user.shop_id, batch.records)

    return CallListResponse(
        items=batch.records,
        total=len(batch.records),
        skipped_ids=batch.skipped_ids,
    )


@router.get("/calls/{call_id}")
async def get_call(
    call_id: str,
    user: DashboardUser = Depends(_rate_limited_user),
    source: RecordSource = Depends(get_record_source),
) -> CallRecord:
    """Get a single normalized call."""
    raw = await source.get_call(call_id)
    if raw is None:
        raise HTTPException(status_code=404, detail="Call not found")

    try:
        return normalize_call(raw)
    except InvalidRecord as e:
        logger.error("Provider returned an invalid record for %s: %s", call_id, e)
        raise HTTPException(status_code=502, detail="Invalid call record from provider")


@router.get("/assistants")
async def list_assistants(
    user: DashboardUser = Depends(_rate_limited_user),
    source: RecordSource = Depends(get_record_source),
) -> list[dict[str, Any]]:
    """Assistants configured on the provider account."""
    return await source.list_assistants()


@router.get("/test-connection")
async def check_connection(
    user: DashboardUser = Depends(_rate_limited_user),
    source: RecordSource = Depends(get_record_source),
) -> dict[str, Any]:
    """Probe the record source by listing assistants.

    Provider failures surface through the app-level VapiError handlers (502).
    """
    assistants = await source.list_assistants()
    logger.info("Connection test for shop %s: %s ok", user.shop_id, source.name)
    return {
        "success": True,
        "source": source.name,
        "message": f"Successfully connected to {source.name}",
        "assistants": len(assistants),
    }


# =============================================================================
# DASHBOARD
# =============================================================================


@router.get("/dashboard")
async def get_dashboard(
    user: DashboardUser = Depends(_rate_limited_user),
    query: CallQuery = Depends(_call_query),
    source: RecordSource = Depends(get_record_source),
    cache: TTLCache = Depends(get_dashboard_cache),
    store: CallStore | None = Depends(get_call_store),
) -> DashboardSnapshot:
    """Calls, KPIs and charts in one payload."""
    return await load_dashboard(source, cache, query, user.shop_id, store=store)


@router.get("/dashboard/metrics")
async def get_dashboard_metrics(
    user: DashboardUser = Depends(_rate_limited_user),
    query: CallQuery = Depends(_call_query),
    source: RecordSource = Depends(get_record_source),
    cache: TTLCache = Depends(get_dashboard_cache),
    store: CallStore | None = Depends(get_call_store),
) -> DashboardMetrics:
    snapshot = await load_dashboard(source, cache, query, user.shop_id, store=store)
    return snapshot.metrics


@router.get("/dashboard/charts")
async def get_dashboard_charts(
    user: DashboardUser = Depends(_rate_limited_user),
    query: CallQuery = Depends(_call_query),
    source: RecordSource = Depends(get_record_source),
    cache: TTLCache = Depends(get_dashboard_cache),
    store: CallStore | None = Depends(get_call_store),
) -> ChartData:
    snapshot = await load_dashboard(source, cache, query, user.shop_id, store=store)
    return snapshot.charts


@router.post("/dashboard/refresh")
async def refresh_dashboard(
    user: DashboardUser = Depends(_rate_limited_user),
    query: CallQuery = Depends(_call_query),
    source: RecordSource = Depends(get_record_source),
    cache: TTLCache = Depends(get_dashboard_cache),
    store: CallStore | None = Depends(get_call_store),
) -> DashboardSnapshot:
    """Drop the shop's cached dashboards and rebuild from the source."""
    invalidate_dashboard(cache, user.shop_id)
    return await load_dashboard(source, cache, query, user.shop_id, store=store)
