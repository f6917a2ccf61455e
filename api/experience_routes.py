from fastapi import APIRouter, Request, Response

from models.experience import ExperienceResolveRequest, ExperienceResolution
from services.cache import durable_visitor_storage, session_visitor_storage
from services.events import build_event
from services.experience import ExperienceResolver
from services.storage import CookieStorage, Storage
from celery_tasks.event_tasks import insert_analytics_event
from api.depends import CLIENT_AUTH, VALKEY_BACKEND
from config import config

import logging

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

experience_router = APIRouter(tags=["experience"])


def _resolve(body: ExperienceResolveRequest, durable: Storage, session: Storage, user_agent: str | None) -> ExperienceResolution:
    resolver = ExperienceResolver(durable, session, utm_expiry_days=config.utm_expiry_days)
    resolution = resolver.resolve(body.page, body, ab_test=body.ab_test)

    redirecting = resolution.page_test is not None and resolution.page_test.redirect
    if body.track_page_view and not redirecting:
        event = build_event(resolution, "page_view", user_agent=user_agent)
        task = insert_analytics_event.delay(event.model_dump(mode="json"))
        logger.debug("page_view queued for page %s: task %s", resolution.page_id, task.id)

    return resolution


# POST /experience/resolve (visitor storage lives in the visitor's cookies)
@experience_router.post("/experience/resolve", response_model=ExperienceResolution)
def resolve_experience_route(body: ExperienceResolveRequest, request: Request, response: Response):
    """Resolve A/B variants and block visibility for the calling browser."""
    durable = CookieStorage(request.cookies, max_age=config.cookie_max_age_days * SECONDS_PER_DAY)
    session = CookieStorage(request.cookies)

    resolution = _resolve(body, durable, session, request.headers.get("user-agent"))

    durable.apply(response)
    session.apply(response)
    return resolution


# POST /visitors/{visitor_key}/experience/resolve (visitor storage lives in Valkey)
@experience_router.post(
    "/visitors/{visitor_key}/experience/resolve",
    response_model=ExperienceResolution,
    dependencies=[CLIENT_AUTH],
)
def resolve_visitor_experience_route(
    visitor_key: str,
    body: ExperienceResolveRequest,
    request: Request,
    backend=VALKEY_BACKEND,
):
    """Resolve for a visitor identified by the caller, e.g. an app proxy without cookie access."""
    durable = durable_visitor_storage(backend, visitor_key)
    session = session_visitor_storage(backend, visitor_key)
    return _resolve(body, durable, session, request.headers.get("user-agent"))
