from celery_config import celery_app
from data.database import AnalyticsEvent, SessionLocal
from models.events import AnalyticsEventCreate
from typing import Any
import json
import logging

logger = logging.getLogger(__name__)

def get_db_session():
    """Provides a fresh database session for asynchronous task execution."""
    try:
        return SessionLocal()
    except Exception as e:
        logger.error("Failed to create database session in Celery task: %s", e)
        return None

# the result is never read, so don't store it in the backend
@celery_app.task(bind=True, max_retries=3, default_retry_delay=30, ignore_result=True)
def insert_analytics_event(self, event_data: dict[str, Any]):
    """
    Inserts a visitor analytics event into the database.
    ``event_data`` is an ``AnalyticsEventCreate`` dumped in JSON mode.
    """
    db = None
    event = AnalyticsEventCreate.model_validate(event_data)
    try:
        db = get_db_session()
        if not db:
            # Raise an exception to trigger Celery retry
            raise ConnectionError("Could not establish database session.")

        db_event = AnalyticsEvent(
            page_id=event.page_id,
            event_type=event.event_type,
            block_id=event.block_id,
            visitor_id=event.visitor_id,
            session_id=event.session_id,
            utm_source=event.utm_source,
            utm_medium=event.utm_medium,
            utm_campaign=event.utm_campaign,
            utm_term=event.utm_term,
            utm_content=event.utm_content,
            referrer=event.referrer,
            user_agent=event.user_agent,
            ab_test_id=event.ab_test_id,
            variant_id=event.variant_id,
            metadata_json=json.dumps(event.metadata) if event.metadata else None,
            created_at=event.timestamp,
        )
        db.add(db_event)
        db.commit()

        logger.info("Task %s[%s]. Inserted %s event for visitor %s on page %s.",
                    self.name, self.request.id, event.event_type, event.visitor_id, event.page_id)
    except ConnectionError as exc:
        logger.error("Database connection failed in Celery task. Retrying...")
        raise self.retry(exc=exc)
    except Exception as exc:
        logger.error("Failed to insert analytics event: %s. Event: %s", exc, event)
        raise  # re-raise so Celery marks FAILURE and we can debug it

    finally:
        if db:
            db.close()
