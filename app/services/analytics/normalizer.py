"""
Call Record Normalizer — raw provider call objects to canonical CallRecords.

Raw records are untrusted and partially present. Every optional field falls
back to a documented default; only a missing or non-string id is rejected
(InvalidRecord). Pure: the only clock read is the "now" default for absent
timestamps, and callers can pin it.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, NamedTuple

from app.models.calls import CallRecord, CallStatus, EndReason
from app.services.analytics.scoring import score_call

logger = logging.getLogger(__name__)

TRANSCRIPT_PLACEHOLDER = "Transcript not available"

_STATUS_MAP: dict[str, CallStatus] = {
    "ended": CallStatus.COMPLETED,
    "failed": CallStatus.FAILED,
    "error": CallStatus.FAILED,
    "ringing": CallStatus.IN_PROGRESS,
    "in-progress": CallStatus.IN_PROGRESS,
}

_END_REASON_MAP: dict[str, EndReason] = {
    "customer-ended-call": EndReason.CUSTOMER_HANGUP,
    "customer-hung-up": EndReason.CUSTOMER_HANGUP,
    "assistant-ended-call": EndReason.ASSISTANT_HANGUP,
    "assistant-hung-up": EndReason.ASSISTANT_HANGUP,
    "pipeline-error": EndReason.SYSTEM_ERROR,
    "exceeded-max-duration": EndReason.TIMEOUT,
    "silence-timeout": EndReason.TIMEOUT,
    "voicemail": EndReason.CUSTOMER_COMPLETE,
}


class InvalidRecord(ValueError):
    """Raw call record that cannot be normalized (missing or bad id)."""


class NormalizedBatch(NamedTuple):
    records: list[CallRecord]
    skipped_ids: list[str]


# =============================================================================
# FIELD HELPERS
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Returns None for anything missing or unparseable. Naive values are
    taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparseable timestamp: %r", value)
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def derive_duration(
    raw_duration: Any, started: datetime | None, ended: datetime | None
) -> int:
    """Whole seconds of call time, never negative.

    A positive explicit duration wins; otherwise the timestamp difference is
    floored, with inverted timestamps clamped to 0.
    """
    if _is_number(raw_duration) and raw_duration > 0:
        return math.floor(raw_duration)
    if started is not None and ended is not None:
        return max(0, math.floor((ended - started).total_seconds()))
    return 0


def _map_status(value: Any) -> CallStatus:
    if isinstance(value, str):
        return _STATUS_MAP.get(value, CallStatus.COMPLETED)
    return CallStatus.COMPLETED


def _map_end_reason(value: Any) -> EndReason:
    if isinstance(value, str):
        return _END_REASON_MAP.get(value, EndReason.CUSTOMER_COMPLETE)
    return EndReason.CUSTOMER_COMPLETE


def _build_transcript(raw: dict[str, Any]) -> str:
    transcript = raw.get("transcript")
    if isinstance(transcript, str) and transcript:
        return transcript

    messages = raw.get("messages")
    if isinstance(messages, list) and messages:
        lines = [
            f"{m.get('role', '')}: {m.get('message', '')}"
            for m in messages
            if isinstance(m, dict)
        ]
        if lines:
            return "\n".join(lines)

    return TRANSCRIPT_PLACEHOLDER


def _extract_cost(raw: dict[str, Any]) -> float:
    cost = raw.get("cost")
    if _is_number(cost) and cost > 0:
        return float(cost)
    breakdown = raw.get("costBreakdown")
    if isinstance(breakdown, dict):
        total = breakdown.get("total")
        if _is_number(total) and total > 0:
            return float(total)
    return 0.0


def _nested_str(raw: dict[str, Any], parent: str, key: str) -> str | None:
    container = raw.get(parent)
    if isinstance(container, dict):
        value = container.get(key)
        if isinstance(value, str) and value:
            return value
    return None


# =============================================================================
# NORMALIZATION
# =============================================================================


def normalize_call(raw: dict[str, Any], now: datetime | None = None) -> CallRecord:
    """Map one raw provider call object to a CallRecord.

    Raises InvalidRecord when the record has no usable id.
    """
    if not isinstance(raw, dict):
        raise InvalidRecord(f"Call record must be an object, got {type(raw).__name__}")

    call_id = raw.get("id")
    if not isinstance(call_id, str) or not call_id:
        raise InvalidRecord(f"Call record has no valid id: {call_id!r}")

    current = now or datetime.now(timezone.utc)
    started = parse_timestamp(raw.get("createdAt"))
    ended = parse_timestamp(raw.get("endedAt"))
    duration = derive_duration(raw.get("duration"), started, ended)

    ended_reason = raw.get("endedReason")
    if not isinstance(ended_reason, str):
        ended_reason = None

    assistant_id = raw.get("assistantId")
    recording_url = raw.get("recordingUrl")

    return CallRecord(
        id=call_id,
        assistant_id=assistant_id if isinstance(assistant_id, str) and assistant_id else "unknown",
        assistant_name=_nested_str(raw, "assistant", "name") or "Unknown Assistant",
        start_time=started or current,
        end_time=ended or current,
        duration=duration,
        status=_map_status(raw.get("status")),
        end_reason=_map_end_reason(ended_reason),
        transcript=_build_transcript(raw),
        audio_url=recording_url if isinstance(recording_url, str) else "",
        customer_phone=_nested_str(raw, "customer", "number") or "Unknown",
        success_rating=score_call(duration, ended_reason),
        cost=_extract_cost(raw),
    )


def normalize_calls(
    raws: Iterable[dict[str, Any]], now: datetime | None = None
) -> NormalizedBatch:
    """Normalize a batch, skipping (and reporting) records that fail.

    Skipped records are identified by their id when they have one, else by
    "#<index>". Duplicate ids keep the first occurrence.
    """
    current = now or datetime.now(timezone.utc)
    records: list[CallRecord] = []
    skipped: list[str] = []
    seen: set[str] = set()

    for index, raw in enumerate(raws):
        try:
            record = normalize_call(raw, now=current)
        except InvalidRecord as e:
            raw_id = raw.get("id") if isinstance(raw, dict) else None
            label = str(raw_id) if raw_id not in (None, "") else f"#{index}"
            logger.warning("Skipping call record %s: %s", label, e)
            skipped.append(label)
            continue

        if record.id in seen:
            logger.warning("Skipping duplicate call record %s", record.id)
            skipped.append(record.id)
            continue

        seen.add(record.id)
        records.append(record)

    if skipped:
        logger.warning("Normalized %d calls, skipped %d", len(records), len(skipped))
    return NormalizedBatch(records=records, skipped_ids=skipped)
