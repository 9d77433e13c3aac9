"""
Dashboard Service — fetch, normalize, aggregate, cache.

build_snapshot() is the pure part: raw records in, DashboardSnapshot out.
load_dashboard() adds the record source, the per-tenant cache and optional
persistence around it.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from app.config import settings
from app.models.calls import CallQuery
from app.models.dashboard import DashboardSnapshot
from app.services.analytics.cache import TTLCache
from app.services.analytics.charts import compute_chart_data
from app.services.analytics.metrics import compute_metrics
from app.services.analytics.normalizer import normalize_calls
from app.services.analytics.sources import RecordSource
from app.services.analytics.store import CallStore

logger = logging.getLogger(__name__)

# Largest page a source accepts (CallQuery.limit upper bound)
PAGE_SIZE = 1000


def build_snapshot(
    raws: list[dict[str, Any]],
    source_name: str,
    include_cost: bool = True,
    now: datetime | None = None,
    today: date | None = None,
) -> DashboardSnapshot:
    """Normalize raw records and derive metrics + charts from them."""
    current = now or datetime.now(timezone.utc)
    batch = normalize_calls(raws, now=current)

    return DashboardSnapshot(
        calls=batch.records,
        metrics=compute_metrics(batch.records, include_cost=include_cost),
        charts=compute_chart_data(batch.records, today=today or current.date()),
        source=source_name,
        skipped_ids=batch.skipped_ids,
        generated_at=current,
    )


def with_default_lookback(query: CallQuery, days: int) -> CallQuery:
    """Fill in start_date when the caller gave none."""
    if query.start_date is not None:
        return query
    start = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(days=days)
    return query.model_copy(update={"start_date": start})


def _raw_id(raw: Any) -> str | None:
    value = raw.get("id") if isinstance(raw, dict) else None
    return value if isinstance(value, str) and value else None


async def fetch_window(
    source: RecordSource, query: CallQuery, max_calls: int
) -> list[dict[str, Any]]:
    """Every raw call matching the query's filters, paging through the source.

    The caller's limit/offset are ignored. Stops on a short page, a page with
    no unseen ids (providers that ignore offset), or after max_calls.
    """
    raws: list[dict[str, Any]] = []
    seen: set[str] = set()
    offset = 0

    while len(raws) < max_calls:
        page_query = query.model_copy(update={"limit": PAGE_SIZE, "offset": offset})
        page = await source.list_calls(page_query)

        fresh = [r for r in page if _raw_id(r) is None or _raw_id(r) not in seen]
        seen.update(i for i in map(_raw_id, fresh) if i is not None)
        raws.extend(fresh)

        if len(page) < PAGE_SIZE or not fresh:
            break
        offset += len(page)
    else:
        logger.warning(
            "Dashboard window truncated at %d calls from %s", max_calls, source.name
        )

    return raws[:max_calls]


def _cache_prefix(shop_id: str) -> str:
    # JSON-quoted so one shop id can never be a prefix of another's keys
    return f"{json.dumps(shop_id)}:"


def _cache_key(shop_id: str, source_name: str, query: CallQuery) -> str:
    # Built from the query as received, before the look-back default is applied.
    # Paging does not change the aggregate, so it is not part of the key.
    parts = query.model_dump(mode="json", exclude={"limit", "offset"})
    filters = ",".join(f"{k}={v}" for k, v in sorted(parts.items()))
    return f"{_cache_prefix(shop_id)}{source_name}:{filters}"


async def load_dashboard(
    source: RecordSource,
    cache: TTLCache,
    query: CallQuery,
    shop_id: str,
    store: CallStore | None = None,
    lookback_days: int | None = None,
) -> DashboardSnapshot:
    """Get the dashboard snapshot for a shop, computing it on a cache miss.

    The snapshot covers the whole filtered window, not one page of it.
    """
    resolved = with_default_lookback(
        query, lookback_days or settings.default_lookback_days
    )
    key = _cache_key(shop_id, source.name, query)

    async def _compute() -> DashboardSnapshot:
        raws = await fetch_window(source, resolved, settings.dashboard_max_calls)
        snapshot = build_snapshot(
            raws,
            source_name=source.name,
            include_cost=settings.cost_tracking_enabled,
        )
        logger.info(
            "Dashboard built for shop %s: %d calls (%d skipped) from %s",
            shop_id,
            len(snapshot.calls),
            len(snapshot.skipped_ids),
            source.name,
        )
        if store is not None:
            await store.upsert_calls(shop_id, snapshot.calls)
        return snapshot

    return await cache.get_or_compute(key, _compute)


def invalidate_dashboard(cache: TTLCache, shop_id: str) -> int:
    """Drop all cached snapshots for a shop."""
    dropped = cache.invalidate(_cache_prefix(shop_id))
    logger.info("Invalidated %d cached dashboards for shop %s", dropped, shop_id)
    return dropped
