"""
Dashboard Metrics — headline KPIs from a collection of CallRecords.

Pure reduction, no I/O. Rounds half-up (not Python's half-to-even) so the
cards show the same numbers the dashboard always has.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from app.models.calls import CallRecord
from app.models.dashboard import DashboardMetrics

SUCCESS_THRESHOLD = 70


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to `digits` decimal places, halves away from zero for positives."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, 0 when there is nothing to divide by."""
    if whole <= 0:
        return 0
    return int(round_half_up(100 * part / whole))


def compute_metrics(
    records: Sequence[CallRecord], include_cost: bool = True
) -> DashboardMetrics:
    """Reduce calls to dashboard KPIs. Empty input yields all zeros."""
    total_calls = len(records)
    total_seconds = sum(r.duration for r in records)
    successful = sum(1 for r in records if r.success_rating >= SUCCESS_THRESHOLD)

    average = int(round_half_up(total_seconds / total_calls)) if total_calls else 0

    total_cost: float | None = None
    if include_cost:
        total_cost = round_half_up(sum(r.cost for r in records), 2)

    return DashboardMetrics(
        total_call_minutes=round_half_up(total_seconds / 60, 1),
        total_calls=total_calls,
        average_call_duration=average,
        call_success_rate=percent(successful, total_calls),
        total_cost=total_cost,
    )
