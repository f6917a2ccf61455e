from pydantic import BaseModel, Field
from typing import Any, Literal
from datetime import datetime, timezone

AnalyticsEventType = Literal[
    "page_view",
    "form_submission",
    "button_click",
    "phone_click",
    "add_to_cart",
    "purchase",
]

class AnalyticsEventCreate(BaseModel):
    """Schema for recording a visitor event via POST /events."""
    page_id: str
    event_type: AnalyticsEventType
    visitor_id: str
    session_id: str | None = None
    block_id: str | None = None
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    referrer: str | None = None
    user_agent: str | None = None
    ab_test_id: str | None = Field(default=None, description="Page-level A/B test the visitor is in.")
    variant_id: str | None = Field(default=None, description="Page-level variant the visitor was assigned.")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] | None = Field(default_factory=dict, description="Flexible JSON for extra context.")

class AnalyticsEventQueued(BaseModel):
    """Schema for the response after queueing an event."""
    status: str = "queued"
    task_id: str
