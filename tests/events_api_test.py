import json
from fastapi import status
from data.database import AnalyticsEvent


def test_health(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "healthy"}


def test_record_event(client, db_session):
    payload = {
        "page_id": "page-1",
        "event_type": "form_submission",
        "visitor_id": "visitor-events-1",
        "session_id": "session-1",
        "block_id": "b1",
        "utm_source": "google",
        "ab_test_id": "t1",
        "variant_id": "original",
        "timestamp": "2026-05-01T10:00:00Z",
        "metadata": {"block_variant_id": "v2"},
    }

    response = client.post("/events", json=payload)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "queued"
    assert data["task_id"]

    event = db_session.query(AnalyticsEvent).filter(AnalyticsEvent.visitor_id == "visitor-events-1").one()
    assert event.event_type == "form_submission"
    assert event.block_id == "b1"
    assert event.ab_test_id == "t1"
    assert event.variant_id == "original"
    assert json.loads(event.metadata_json) == {"block_variant_id": "v2"}


def test_unknown_event_type_is_rejected(client):
    payload = {"page_id": "page-1", "event_type": "scroll", "visitor_id": "visitor-events-2"}

    response = client.post("/events", json=payload)
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_resolution_passes_through_to_events(client, db_session):
    ab_test = {
        "id": "t-pass",
        "originalPageId": "page-1",
        "variants": [{"id": "tv", "name": "Treatment", "pageId": "page-2", "trafficPercentage": 0}],
    }
    resolution = client.post(
        "/experience/resolve",
        json={"page": {"id": "page-1"}, "ab_test": ab_test, "url_params": {"utm_source": "tiktok"}},
    ).json()

    payload = {
        "page_id": resolution["page_id"],
        "event_type": "button_click",
        "visitor_id": resolution["visitor_id"],
        "session_id": resolution["session_id"],
        "utm_source": resolution["utm"]["utm_source"],
        "ab_test_id": resolution["page_test"]["test_id"],
        "variant_id": resolution["page_test"]["variant_id"],
    }
    assert client.post("/events", json=payload).status_code == status.HTTP_200_OK

    event = db_session.query(AnalyticsEvent).filter(AnalyticsEvent.visitor_id == resolution["visitor_id"]).one()
    assert event.ab_test_id == "t-pass"
    assert event.variant_id == "original"
    assert event.utm_source == "tiktok"
