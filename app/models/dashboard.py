"""
Dashboard Models — Pydantic response models for metrics and chart endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.calls import CallRecord


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# SUMMARY (KPI CARDS)
# =============================================================================


class DashboardMetrics(_CamelModel):
    """Headline KPIs for the dashboard metric cards."""

    total_call_minutes: float  # one decimal place
    total_calls: int
    average_call_duration: int  # seconds
    call_success_rate: int  # percent of calls rated >= 70
    total_cost: float | None = None  # None when cost tracking is disabled


# =============================================================================
# CHARTS
# =============================================================================


class EndReasonSlice(_CamelModel):
    """End-reason distribution for the pie chart."""

    reason: str
    label: str
    count: int
    percentage: int


class AssistantDuration(_CamelModel):
    """Average call duration per assistant."""

    assistant: str
    avg_duration: int  # seconds
    call_count: int


class SuccessBucket(_CamelModel):
    """Success-rating histogram bucket."""

    range: str  # e.g. "71-80", inclusive
    count: int


class DailyVolumePoint(_CamelModel):
    """Single day in the call volume chart."""

    date: str  # "Oct 19"
    calls: int
    minutes: float


class ChartData(_CamelModel):
    """All chart breakdowns for the dashboard."""

    end_reasons: list[EndReasonSlice]
    assistant_durations: list[AssistantDuration]
    success_distribution: list[SuccessBucket]
    daily_call_volume: list[DailyVolumePoint]


# =============================================================================
# SNAPSHOT
# =============================================================================


class DashboardSnapshot(_CamelModel):
    """Calls plus everything derived from them, as served to the dashboard."""

    calls: list[CallRecord]
    metrics: DashboardMetrics
    charts: ChartData
    source: str
    skipped_ids: list[str] = Field(default_factory=list)
    generated_at: datetime
