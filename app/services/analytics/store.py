"""
Call Store — persists normalized calls to Supabase for later analytics.

Writes are best-effort: a failed upsert is logged and the dashboard
request still succeeds.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from app.models.calls import CallRecord
from app.services.supabase import get_supabase_client

logger = logging.getLogger(__name__)

_CALLS_TABLE = "calls"


def _to_row(shop_id: str, record: CallRecord) -> dict[str, Any]:
    return {
        "vapi_call_id": record.id,
        "shop_id": shop_id,
        "assistant_id": record.assistant_id,
        "customer_phone": record.customer_phone,
        "start_time": record.start_time.isoformat(),
        "end_time": record.end_time.isoformat(),
        "duration": record.duration,
        "status": record.status.value,
        "end_reason": record.end_reason.value,
        "transcript": record.transcript,
        "audio_url": record.audio_url,
        "success_rating": record.success_rating,
        "cost": record.cost,
    }


class CallStore:
    """Upserts canonical call records into the `calls` table."""

    async def upsert_calls(self, shop_id: str, records: Sequence[CallRecord]) -> int:
        """Upsert records for a shop. Returns the number written (0 on failure)."""
        if not records:
            return 0

        rows = [_to_row(shop_id, r) for r in records]
        try:
            sb = await get_supabase_client()
            await (
                sb.table(_CALLS_TABLE)
                .upsert(rows, on_conflict="vapi_call_id")
                .execute()
            )
        except Exception:
            logger.exception("Failed to persist %d calls for shop %s", len(rows), shop_id)
            return 0

        logger.info("Persisted %d calls for shop %s", len(rows), shop_id)
        return len(rows)
