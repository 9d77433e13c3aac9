"""
Dashboard Charts — four independent breakdowns of a CallRecord collection.

  end_reasons          — distribution by canonical end reason
  assistant_durations  — average duration per assistant
  success_distribution — fixed success-rating histogram
  daily_call_volume    — calls/minutes for the last 7 UTC days

Pure given `today`. Groups keep first-appearance order.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

from app.models.calls import CallRecord
from app.models.dashboard import (
    AssistantDuration,
    ChartData,
    DailyVolumePoint,
    EndReasonSlice,
    SuccessBucket,
)
from app.services.analytics.metrics import percent, round_half_up

# Inclusive bounds. Ratings below 60 fall outside every bucket.
SUCCESS_BUCKETS: tuple[tuple[int, int], ...] = (
    (60, 70),
    (71, 80),
    (81, 90),
    (91, 100),
)

DAILY_WINDOW_DAYS = 7

# Fixed English labels, independent of the process locale
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _reason_label(reason: str) -> str:
    """customer_hangup -> Customer Hangup"""
    return " ".join(word.capitalize() for word in reason.split("_"))


def _day_label(day: date) -> str:
    """Short month + day without padding, e.g. "Oct 9"."""
    return f"{_MONTHS[day.month - 1]} {day.day}"


# =============================================================================
# BREAKDOWNS
# =============================================================================


def end_reason_distribution(records: Sequence[CallRecord]) -> list[EndReasonSlice]:
    counts: dict[str, int] = {}
    for record in records:
        reason = record.end_reason.value
        counts[reason] = counts.get(reason, 0) + 1

    total = len(records)
    return [
        EndReasonSlice(
            reason=reason,
            label=_reason_label(reason),
            count=count,
            percentage=percent(count, total),
        )
        for reason, count in counts.items()
    ]


def assistant_durations(records: Sequence[CallRecord]) -> list[AssistantDuration]:
    stats: dict[str, list[int]] = {}  # name -> [total_duration, call_count]
    for record in records:
        entry = stats.setdefault(record.assistant_name, [0, 0])
        entry[0] += record.duration
        entry[1] += 1

    return [
        AssistantDuration(
            assistant=name,
            avg_duration=int(round_half_up(total / count)),
            call_count=count,
        )
        for name, (total, count) in stats.items()
    ]


def success_distribution(records: Sequence[CallRecord]) -> list[SuccessBucket]:
    return [
        SuccessBucket(
            range=f"{low}-{high}",
            count=sum(1 for r in records if low <= r.success_rating <= high),
        )
        for low, high in SUCCESS_BUCKETS
    ]


def daily_call_volume(
    records: Sequence[CallRecord], today: date | None = None
) -> list[DailyVolumePoint]:
    """One point per UTC day, oldest first, ending with `today`."""
    end_day = today or datetime.now(timezone.utc).date()

    by_day: dict[date, list[int]] = {}  # day -> [calls, seconds]
    for record in records:
        day = record.start_time.astimezone(timezone.utc).date()
        entry = by_day.setdefault(day, [0, 0])
        entry[0] += 1
        entry[1] += record.duration

    points: list[DailyVolumePoint] = []
    for offset in range(DAILY_WINDOW_DAYS - 1, -1, -1):
        day = end_day - timedelta(days=offset)
        calls, seconds = by_day.get(day, (0, 0))
        points.append(
            DailyVolumePoint(
                date=_day_label(day),
                calls=calls,
                minutes=round_half_up(seconds / 60, 1),
            )
        )
    return points


# =============================================================================
# AGGREGATE
# =============================================================================


def compute_chart_data(
    records: Sequence[CallRecord], today: date | None = None
) -> ChartData:
    """Build every chart breakdown from the same record collection."""
    return ChartData(
        end_reasons=end_reason_distribution(records),
        assistant_durations=assistant_durations(records),
        success_distribution=success_distribution(records),
        daily_call_volume=daily_call_volume(records, today=today),
    )
