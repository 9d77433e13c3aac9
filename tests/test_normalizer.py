"""
Tests for the call record normalizer.

Covers: duration derivation, status/end-reason mapping, transcript
fallbacks, defaults, cost, scoring input, invalid ids, batch skipping.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from app.models.calls import CallStatus, EndReason
from app.services.analytics.normalizer import (
    TRANSCRIPT_PLACEHOLDER,
    InvalidRecord,
    derive_duration,
    normalize_call,
    normalize_calls,
    parse_timestamp,
)

_NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def _raw(**overrides: Any) -> dict[str, Any]:
    """Build a minimal raw provider call."""
    row: dict[str, Any] = {"id": "call-1"}
    row.update(overrides)
    return row


# ===========================================================================
# TestDuration
# ===========================================================================


@pytest.mark.unit
class TestDuration:
    """Duration from explicit value or timestamp difference."""

    def test_derived_from_timestamps(self) -> None:
        record = normalize_call(
            _raw(createdAt="2024-01-01T00:00:00Z", endedAt="2024-01-01T00:02:05Z")
        )
        assert record.duration == 125

    def test_fractional_seconds_floored(self) -> None:
        record = normalize_call(
            _raw(
                createdAt="2024-01-01T00:00:00.000Z",
                endedAt="2024-01-01T00:00:09.999Z",
            )
        )
        assert record.duration == 9

    def test_explicit_duration_wins(self) -> None:
        record = normalize_call(
            _raw(
                duration=42,
                createdAt="2024-01-01T00:00:00Z",
                endedAt="2024-01-01T00:02:05Z",
            )
        )
        assert record.duration == 42

    def test_explicit_float_duration_floored(self) -> None:
        assert normalize_call(_raw(duration=61.9)).duration == 61

    def test_negative_duration_ignored(self) -> None:
        record = normalize_call(
            _raw(
                duration=-5,
                createdAt="2024-01-01T00:00:00Z",
                endedAt="2024-01-01T00:00:10Z",
            )
        )
        assert record.duration == 10

    def test_inverted_timestamps_clamped(self) -> None:
        record = normalize_call(
            _raw(createdAt="2024-01-01T00:05:00Z", endedAt="2024-01-01T00:00:00Z")
        )
        assert record.duration == 0

    def test_nothing_available(self) -> None:
        assert normalize_call(_raw(), now=_NOW).duration == 0

    def test_only_start_timestamp(self) -> None:
        assert normalize_call(_raw(createdAt="2024-01-01T00:00:00Z"), now=_NOW).duration == 0

    def test_boolean_is_not_a_duration(self) -> None:
        assert derive_duration(True, None, None) == 0


# ===========================================================================
# TestTimestamps
# ===========================================================================


@pytest.mark.unit
class TestTimestamps:
    """Timestamp parsing and "now" defaults."""

    def test_parse_zulu(self) -> None:
        parsed = parse_timestamp("2024-01-01T00:00:00Z")
        assert parsed == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_parse_offset_converted_to_utc(self) -> None:
        parsed = parse_timestamp("2024-01-01T02:00:00+02:00")
        assert parsed == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_parse_naive_assumed_utc(self) -> None:
        parsed = parse_timestamp("2024-01-01T00:00:00")
        assert parsed is not None
        assert parsed.tzinfo is not None

    def test_parse_garbage(self) -> None:
        assert parse_timestamp("yesterday-ish") is None
        assert parse_timestamp(12345) is None
        assert parse_timestamp(None) is None

    def test_missing_timestamps_default_to_now(self) -> None:
        record = normalize_call(_raw(), now=_NOW)
        assert record.start_time == _NOW
        assert record.end_time == _NOW

    def test_unparseable_timestamp_defaults_to_now(self) -> None:
        record = normalize_call(_raw(createdAt="not-a-date"), now=_NOW)
        assert record.start_time == _NOW


# ===========================================================================
# TestMappings
# ===========================================================================


@pytest.mark.unit
class TestMappings:
    """Provider status / endedReason → canonical enums."""

    @pytest.mark.parametrize(
        "raw_status, expected",
        [
            ("ended", CallStatus.COMPLETED),
            ("failed", CallStatus.FAILED),
            ("error", CallStatus.FAILED),
            ("ringing", CallStatus.IN_PROGRESS),
            ("in-progress", CallStatus.IN_PROGRESS),
            ("queued", CallStatus.COMPLETED),
            (None, CallStatus.COMPLETED),
        ],
    )
    def test_status(self, raw_status: str | None, expected: CallStatus) -> None:
        assert normalize_call(_raw(status=raw_status)).status == expected

    @pytest.mark.parametrize(
        "raw_reason, expected",
        [
            ("customer-ended-call", EndReason.CUSTOMER_HANGUP),
            ("customer-hung-up", EndReason.CUSTOMER_HANGUP),
            ("assistant-ended-call", EndReason.ASSISTANT_HANGUP),
            ("assistant-hung-up", EndReason.ASSISTANT_HANGUP),
            ("pipeline-error", EndReason.SYSTEM_ERROR),
            ("exceeded-max-duration", EndReason.TIMEOUT),
            ("silence-timeout", EndReason.TIMEOUT),
            ("voicemail", EndReason.CUSTOMER_COMPLETE),
        ],
    )
    def test_end_reason(self, raw_reason: str, expected: EndReason) -> None:
        assert normalize_call(_raw(endedReason=raw_reason)).end_reason == expected

    def test_unmapped_end_reason(self) -> None:
        record = normalize_call(_raw(endedReason="weird-custom-value"))
        assert record.end_reason == EndReason.CUSTOMER_COMPLETE

    def test_missing_end_reason(self) -> None:
        assert normalize_call(_raw()).end_reason == EndReason.CUSTOMER_COMPLETE


# ===========================================================================
# TestFields
# ===========================================================================


@pytest.mark.unit
class TestFields:
    """Transcript, defaults, cost, scoring."""

    def test_transcript_string_preferred(self) -> None:
        record = normalize_call(
            _raw(transcript="hello", messages=[{"role": "user", "message": "x"}])
        )
        assert record.transcript == "hello"

    def test_transcript_from_messages(self) -> None:
        record = normalize_call(
            _raw(
                messages=[
                    {"role": "assistant", "message": "Hi, how can I help?"},
                    {"role": "user", "message": "Book a table"},
                ]
            )
        )
        assert record.transcript == "assistant: Hi, how can I help?\nuser: Book a table"

    def test_transcript_placeholder(self) -> None:
        assert normalize_call(_raw()).transcript == TRANSCRIPT_PLACEHOLDER
        assert normalize_call(_raw(transcript="", messages=[])).transcript == TRANSCRIPT_PLACEHOLDER

    def test_defaults(self) -> None:
        record = normalize_call(_raw(), now=_NOW)
        assert record.assistant_id == "unknown"
        assert record.assistant_name == "Unknown Assistant"
        assert record.audio_url == ""
        assert record.customer_phone == "Unknown"
        assert record.cost == 0.0

    def test_nested_fields(self) -> None:
        record = normalize_call(
            _raw(
                assistantId="asst-9",
                assistant={"name": "Sarah (Main)"},
                customer={"number": "+15551234567"},
                recordingUrl="https://example.com/a.mp3",
            )
        )
        assert record.assistant_id == "asst-9"
        assert record.assistant_name == "Sarah (Main)"
        assert record.customer_phone == "+15551234567"
        assert record.audio_url == "https://example.com/a.mp3"

    def test_cost_from_breakdown(self) -> None:
        assert normalize_call(_raw(costBreakdown={"total": 0.42})).cost == 0.42

    def test_cost_direct_wins(self) -> None:
        assert normalize_call(_raw(cost=1.5, costBreakdown={"total": 0.42})).cost == 1.5

    def test_negative_cost_ignored(self) -> None:
        assert normalize_call(_raw(cost=-3)).cost == 0.0

    def test_scoring_uses_raw_reason_and_derived_duration(self) -> None:
        record = normalize_call(
            _raw(
                endedReason="customer-ended-call",
                createdAt="2024-01-01T00:00:00Z",
                endedAt="2024-01-01T00:01:00Z",
            )
        )
        # 60s derived from timestamps > 30 → engaged customer
        assert record.success_rating == 85
        assert record.end_reason == EndReason.CUSTOMER_HANGUP

    def test_record_is_immutable(self) -> None:
        record = normalize_call(_raw())
        with pytest.raises(Exception):
            record.duration = 10  # type: ignore[misc]

    def test_serializes_camel_case(self) -> None:
        data = normalize_call(_raw(), now=_NOW).model_dump(by_alias=True)
        assert "assistantId" in data
        assert "successRating" in data
        assert "startTime" in data


# ===========================================================================
# TestInvalidRecords
# ===========================================================================


@pytest.mark.unit
class TestInvalidRecords:
    """Only the id is mandatory."""

    def test_missing_id(self) -> None:
        with pytest.raises(InvalidRecord):
            normalize_call({"duration": 10})

    def test_non_string_id(self) -> None:
        with pytest.raises(InvalidRecord):
            normalize_call({"id": 123})

    def test_empty_id(self) -> None:
        with pytest.raises(InvalidRecord):
            normalize_call({"id": ""})

    def test_non_dict_record(self) -> None:
        with pytest.raises(InvalidRecord):
            normalize_call("call-1")  # type: ignore[arg-type]


# ===========================================================================
# TestNormalizeBatch
# ===========================================================================


@pytest.mark.unit
class TestNormalizeBatch:
    """Skip-and-collect batch policy."""

    def test_skips_invalid_and_collects_ids(self) -> None:
        batch = normalize_calls(
            [{"id": "a"}, {"id": 7}, {"duration": 5}, {"id": "b"}], now=_NOW
        )
        assert [r.id for r in batch.records] == ["a", "b"]
        assert batch.skipped_ids == ["7", "#2"]

    def test_duplicate_ids_keep_first(self) -> None:
        batch = normalize_calls(
            [{"id": "a", "duration": 10}, {"id": "a", "duration": 99}], now=_NOW
        )
        assert len(batch.records) == 1
        assert batch.records[0].duration == 10
        assert batch.skipped_ids == ["a"]

    def test_empty_batch(self) -> None:
        batch = normalize_calls([])
        assert batch.records == []
        assert batch.skipped_ids == []

    def test_logs_warning_on_skip(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING"):
            normalize_calls([{"id": None}], now=_NOW)
        assert "Skipping call record" in caplog.text
