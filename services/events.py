from typing import Any
from models.events import AnalyticsEventCreate, AnalyticsEventType
from models.experience import ExperienceResolution
import logging

logger = logging.getLogger(__name__)


def build_event(
    resolution: ExperienceResolution,
    event_type: AnalyticsEventType,
    block_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    user_agent: str | None = None,
) -> AnalyticsEventCreate:
    """Build an analytics event for a resolved page view.

    The page-level test and variant go into their own columns. For block
    events the block's own variant is added to ``metadata`` as
    ``block_variant_id``.
    """
    event_metadata = dict(metadata or {})

    if block_id:
        block = resolution.block(block_id)
        if block and block.variant_id:
            event_metadata["block_variant_id"] = block.variant_id

    page_test = resolution.page_test
    utm = resolution.utm

    event = AnalyticsEventCreate(
        page_id=resolution.page_id,
        event_type=event_type,
        visitor_id=resolution.visitor_id,
        session_id=resolution.session_id,
        block_id=block_id,
        utm_source=utm.get("utm_source"),
        utm_medium=utm.get("utm_medium"),
        utm_campaign=utm.get("utm_campaign"),
        utm_term=utm.get("utm_term"),
        utm_content=utm.get("utm_content"),
        referrer=resolution.referrer or None,
        user_agent=user_agent,
        ab_test_id=page_test.test_id if page_test else None,
        variant_id=page_test.variant_id if page_test else None,
        metadata=event_metadata,
    )
    logger.debug("built %s event for page %s, visitor %s", event_type, resolution.page_id, resolution.visitor_id)
    return event
