"""
Call Models — canonical call records and call-listing request/response models.

Attribute names are snake_case; JSON uses camelCase aliases, the shape the
dashboard frontend renders.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# =============================================================================
# ENUMS
# =============================================================================


class CallStatus(str, Enum):
    """Lifecycle status of a call."""

    COMPLETED = "completed"
    FAILED = "failed"
    IN_PROGRESS = "in-progress"


class EndReason(str, Enum):
    """Canonical reason a call ended."""

    CUSTOMER_HANGUP = "customer_hangup"
    ASSISTANT_HANGUP = "assistant_hangup"
    SYSTEM_ERROR = "system_error"
    TIMEOUT = "timeout"
    CUSTOMER_COMPLETE = "customer_complete"


# =============================================================================
# CALL RECORD
# =============================================================================


class CallRecord(BaseModel):
    """A normalized call, built once from a raw provider record."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str = Field(..., min_length=1)
    assistant_id: str = "unknown"
    assistant_name: str = "Unknown Assistant"
    start_time: datetime
    end_time: datetime
    duration: int = Field(0, ge=0)  # seconds
    status: CallStatus = CallStatus.COMPLETED
    end_reason: EndReason = EndReason.CUSTOMER_COMPLETE
    transcript: str = "Transcript not available"
    audio_url: str = ""
    customer_phone: str = "Unknown"
    success_rating: int = Field(..., ge=0, le=100)
    cost: float = Field(0.0, ge=0)


# =============================================================================
# QUERIES / RESPONSES
# =============================================================================


class CallQuery(BaseModel):
    """Filters for fetching calls from a record source."""

    model_config = ConfigDict(frozen=True)

    assistant_id: str | None = None
    limit: int = Field(50, ge=1, le=1000)
    offset: int = Field(0, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None


class CallListResponse(BaseModel):
    """Paginated call list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: list[CallRecord]
    total: int
    skipped_ids: list[str] = Field(default_factory=list)


class DashboardUser(BaseModel):
    """Authenticated dashboard user, scoped to one shop (tenant)."""

    id: str
    shop_id: str
    role: str = "member"
