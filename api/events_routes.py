from fastapi import APIRouter, status

from models.events import AnalyticsEventCreate, AnalyticsEventQueued
from celery_tasks.event_tasks import insert_analytics_event

import logging

logger = logging.getLogger(__name__)

events_router = APIRouter(
    prefix="/events",
    tags=["events"],
)

# POST /events (public: called from visitors' browsers)
@events_router.post("", response_model=AnalyticsEventQueued, status_code=status.HTTP_200_OK)
def record_event_route(event_data: AnalyticsEventCreate):
    """
    Record a visitor event (page view, click, form submission, purchase...).
    The insert is handed to a celery worker and the call returns immediately.
    """
    task = insert_analytics_event.delay(event_data.model_dump(mode="json"))
    logger.debug("insert_analytics_event task: %s", task.id)

    return AnalyticsEventQueued(task_id=task.id)
