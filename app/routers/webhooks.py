"""
Webhooks Router — push ingestion of finished calls from Vapi.

Endpoints:
  POST /webhook/vapi — "call-ended" events are normalized and upserted into
                       the calls table; other event types are acknowledged
                       and ignored.

The tenant comes from the call's metadata.shopId, falling back to
settings.demo_shop_id. When settings.vapi_webhook_secret is set, requests
must carry it in the X-Vapi-Secret header.
"""

from __future__ import annotations

import hmac
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from app.config import settings
from app.services.analytics.cache import TTLCache, get_dashboard_cache
from app.services.analytics.dashboard import invalidate_dashboard
from app.services.analytics.normalizer import InvalidRecord, normalize_call
from app.services.analytics.store import CallStore

logger = logging.getLogger(__name__)

router = APIRouter()

CALL_ENDED = "call-ended"


def get_webhook_store() -> CallStore:
    return CallStore()


def _verify_secret(request: Request) -> None:
    expected = settings.vapi_webhook_secret
    if not expected:
        return
    provided = request.headers.get("X-Vapi-Secret", "")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Vapi webhook rejected: bad or missing secret")
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


def _shop_for(call: dict[str, Any]) -> str:
    metadata = call.get("metadata")
    if isinstance(metadata, dict):
        shop_id = metadata.get("shopId")
        if isinstance(shop_id, str) and shop_id:
            return shop_id
    return settings.demo_shop_id


@router.post("/vapi")
async def vapi_webhook(
    request: Request,
    store: CallStore = Depends(get_webhook_store),
    cache: TTLCache = Depends(get_dashboard_cache),
) -> dict[str, Any]:
    """Receive a Vapi server event."""
    _verify_secret(request)

    try:
        event = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")

    event_type = event.get("type") if isinstance(event, dict) else None
    if event_type != CALL_ENDED:
        logger.debug("Ignoring Vapi webhook event: %s", event_type)
        return {"success": True, "ignored": True}

    call = event.get("data")
    try:
        record = normalize_call(call)
    except InvalidRecord as e:
        logger.warning("Vapi webhook carried an invalid call: %s", e)
        raise HTTPException(status_code=422, detail=f"Invalid call record: {e}")

    shop_id = _shop_for(call)
    written = await store.upsert_calls(shop_id, [record])
    invalidate_dashboard(cache, shop_id)

    logger.info("Vapi webhook: call %s ended for shop %s", record.id, shop_id)
    return {"success": True, "callId": record.id, "persisted": written == 1}
