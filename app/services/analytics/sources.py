"""
Record Sources — where raw call records come from.

Two implementations behind one interface, chosen by configuration:
  mock — deterministic seeded generator (demos, tests, local dev)
  vapi — live Vapi account via the REST client

Both return provider-shaped raw dicts so everything downstream runs the
same normalization path.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from app.config import Settings, settings
from app.models.calls import CallQuery
from app.services.vapi import VapiClient

logger = logging.getLogger(__name__)


class RecordSource(Protocol):
    """Anything that can supply raw provider call records."""

    name: str

    async def list_calls(self, query: CallQuery) -> list[dict[str, Any]]: ...

    async def get_call(self, call_id: str) -> dict[str, Any] | None: ...

    async def list_assistants(self) -> list[dict[str, Any]]: ...


# =============================================================================
# MOCK
# =============================================================================

_MOCK_ASSISTANTS: tuple[tuple[str, str], ...] = (
    ("assistant_1", "Sarah (Main)"),
    ("assistant_2", "Mike (Backup)"),
    ("assistant_3", "Emily (Evening)"),
)

_MOCK_ENDED_REASONS: tuple[str, ...] = (
    "customer-ended-call",
    "customer-hung-up",
    "assistant-ended-call",
    "pipeline-error",
    "exceeded-max-duration",
    "silence-timeout",
    "voicemail",
)

_MOCK_TOPICS: tuple[str, ...] = (
    "appointment booking",
    "product inquiry",
    "order status",
    "general information",
    "complaint",
)


class MockRecordSource:
    """Seeded generator of Vapi-shaped call records.

    The same seed and anchor always produce the same records, so repeated
    dashboard loads (and tests) see identical data.
    """

    name = "mock"

    def __init__(
        self,
        seed: int = 42,
        count: int = 147,
        window_days: int = 30,
        anchor: datetime | None = None,
    ) -> None:
        self.seed = seed
        self.count = count
        self.window_days = window_days
        self.anchor = anchor or datetime.now(timezone.utc).replace(microsecond=0)

    def _generate(self) -> list[dict[str, Any]]:
        rng = random.Random(self.seed)
        window_seconds = self.window_days * 24 * 60 * 60
        calls: list[dict[str, Any]] = []

        for i in range(self.count):
            assistant_id, assistant_name = _MOCK_ASSISTANTS[i % len(_MOCK_ASSISTANTS)]
            started = self.anchor - timedelta(seconds=rng.randrange(window_seconds))
            duration = rng.randint(30, 629)  # 30s to ~10min
            ended = started + timedelta(seconds=duration)
            cost = round(rng.random() * 2 + 0.1, 4)  # $0.10 - $2.10

            calls.append(
                {
                    "id": f"call_{i + 1}",
                    "assistantId": assistant_id,
                    "assistant": {"name": assistant_name},
                    "createdAt": started.isoformat().replace("+00:00", "Z"),
                    "endedAt": ended.isoformat().replace("+00:00", "Z"),
                    "status": "ended" if rng.random() > 0.1 else "failed",
                    "endedReason": rng.choice(_MOCK_ENDED_REASONS),
                    "transcript": (
                        f"Customer called regarding {rng.choice(_MOCK_TOPICS)}. "
                        "The conversation was handled professionally and the "
                        "customer's needs were addressed."
                    ),
                    "recordingUrl": f"https://example.com/audio/call_{i + 1}.mp3",
                    "customer": {"number": f"+1{rng.randint(1000000000, 9999999999)}"},
                    "cost": cost,
                    "costBreakdown": {"total": cost},
                }
            )

        calls.sort(key=lambda c: c["createdAt"], reverse=True)
        return calls

    async def list_calls(self, query: CallQuery) -> list[dict[str, Any]]:
        calls = self._generate()

        if query.assistant_id:
            calls = [c for c in calls if c["assistantId"] == query.assistant_id]
        if query.start_date or query.end_date:
            calls = [c for c in calls if _in_range(c["createdAt"], query)]

        page = calls[query.offset : query.offset + query.limit]
        logger.debug("Mock source: %d of %d calls", len(page), len(calls))
        return page

    async def get_call(self, call_id: str) -> dict[str, Any] | None:
        for call in self._generate():
            if call["id"] == call_id:
                return call
        return None

    async def list_assistants(self) -> list[dict[str, Any]]:
        return [{"id": aid, "name": name} for aid, name in _MOCK_ASSISTANTS]


def _in_range(created_at: str, query: CallQuery) -> bool:
    created = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
    if query.start_date and created <= _as_utc(query.start_date):
        return False
    if query.end_date and created >= _as_utc(query.end_date):
        return False
    return True


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# =============================================================================
# VAPI
# =============================================================================


class VapiRecordSource:
    """Live calls from a Vapi account."""

    name = "vapi"

    def __init__(self, client: VapiClient) -> None:
        self.client = client

    async def list_calls(self, query: CallQuery) -> list[dict[str, Any]]:
        return await self.client.list_calls(
            assistant_id=query.assistant_id,
            limit=query.limit,
            offset=query.offset,
            created_after=query.start_date,
            created_before=query.end_date,
        )

    async def get_call(self, call_id: str) -> dict[str, Any] | None:
        return await self.client.get_call(call_id)

    async def list_assistants(self) -> list[dict[str, Any]]:
        return await self.client.list_assistants()


# =============================================================================
# FACTORY
# =============================================================================


def build_record_source(config: Settings) -> RecordSource:
    """Build the record source named by config.record_source."""
    kind = config.record_source.lower()

    if kind == "mock":
        logger.info(
            "Record source: mock (seed=%d, count=%d)",
            config.mock_seed,
            config.mock_call_count,
        )
        return MockRecordSource(
            seed=config.mock_seed,
            count=config.mock_call_count,
            window_days=config.mock_window_days,
        )

    if kind == "vapi":
        if not config.vapi_private_key:
            raise ValueError("record_source=vapi requires VAPI_PRIVATE_KEY")
        logger.info("Record source: vapi (%s)", config.vapi_base_url)
        return VapiRecordSource(
            VapiClient(
                config.vapi_base_url,
                config.vapi_private_key,
                timeout=config.vapi_timeout_seconds,
            )
        )

    raise ValueError(f"Unknown record source: {config.record_source!r}")


# Singleton
_record_source: RecordSource | None = None


def get_record_source() -> RecordSource:
    """Get or create the configured record source."""
    global _record_source
    if _record_source is None:
        _record_source = build_record_source(settings)
    return _record_source


def reset_record_source() -> None:
    """Reset the singleton (for testing)."""
    global _record_source
    _record_source = None
