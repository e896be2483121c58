import asyncio
import json

import pytest

from featherlog.core.errors import InvalidLogPayload, ReferentialError
from featherlog.routers import ingest as ingest_router
from featherlog.routers.logs import sse_log_frames
from featherlog.schemas.logs import split_log_payload
from featherlog.services.log_store import LogFilters, query_logs


# ── Body parsing ────────────────────────────────────────────
def test_extra_keys_become_metadata():
    payload, metadata = split_log_payload(
        {
            "project-id": "demo",
            "level": "error",
            "message": "boom",
            "userId": 7,
            "metadata": {"nested": True},
        }
    )

    assert payload.project_id == "demo"
    assert payload.timestamp is None
    assert metadata == {"userId": 7, "metadata": {"nested": True}}


def test_timestamp_is_normalised_to_utc():
    payload, _ = split_log_payload(
        {
            "project-id": "demo",
            "level": "info",
            "message": "hi",
            "timestamp": "2026-01-01T14:00:00+02:00",
        }
    )

    assert payload.timestamp.isoformat() == "2026-01-01T12:00:00+00:00"


@pytest.mark.parametrize(
    "body",
    [
        {"level": "info", "message": "hi"},
        {"project-id": "demo", "message": "hi"},
        {"project-id": "demo", "level": "info"},
        {"project-id": "demo", "level": "info", "message": ""},
    ],
)
def test_missing_required_fields(body):
    with pytest.raises(InvalidLogPayload) as exc_info:
        split_log_payload(body)

    assert str(exc_info.value) == "Missing required fields: project-id, level, message"


@pytest.mark.parametrize(
    "body",
    [
        {"project-id": "demo", "level": "debug", "message": "hi"},
        {"project-id": "demo", "level": "info", "message": "   "},
        {"project-id": "demo", "level": "info", "message": "hi", "timestamp": "yesterday"},
        ["not", "an", "object"],
    ],
)
def test_invalid_bodies(body):
    with pytest.raises(InvalidLogPayload):
        split_log_payload(body)


# ── Endpoint ────────────────────────────────────────────────
async def test_ingest_stores_and_broadcasts(client, session, broadcaster, demo_project):
    subscription = broadcaster.subscribe()

    response = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "error", "message": "boom", "userId": 7},
        headers={"Origin": "https://demo.app"},
    )

    assert response.status_code == 201
    assert response.json() == {"success": True}

    event = await asyncio.wait_for(subscription.get(), timeout=1)
    assert event.project_id == "demo"
    assert event.level == "error"
    assert event.message == "boom"
    assert event.metadata == {"userId": 7}
    assert event.to_wire()["project-id"] == "demo"

    events, total = await query_logs(session, LogFilters(project_id="demo"), limit=10)
    assert total == 1
    assert events[0].id == event.id


async def test_ingest_from_disallowed_origin(client, session, broadcaster, demo_project):
    subscription = broadcaster.subscribe()

    response = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "error", "message": "boom"},
        headers={"Origin": "https://evil.com"},
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Origin not allowed for this project"}
    _, total = await query_logs(session, LogFilters(), limit=10)
    assert total == 0
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(subscription.get(), timeout=0.05)


async def test_referer_is_checked_when_origin_is_absent(client, demo_project):
    allowed = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "info", "message": "hi"},
        headers={"Referer": "https://demo.app/checkout?step=2"},
    )
    denied = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "info", "message": "hi"},
        headers={"Referer": "https://evil.com/page"},
    )

    assert allowed.status_code == 201
    assert denied.status_code == 403


async def test_server_side_callers_without_origin_are_accepted(client, demo_project):
    response = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "info", "message": "from a cron job"},
    )

    assert response.status_code == 201


async def test_unknown_project_gets_generic_401(client):
    response = await client.post(
        "/api/logs",
        json={"project-id": "ghost", "level": "info", "message": "hi"},
    )

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid project credentials"}


async def test_missing_fields_is_400(client, demo_project):
    response = await client.post("/api/logs", json={"project-id": "demo", "level": "info"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: project-id, level, message"}


async def test_invalid_json_is_400(client):
    response = await client.post(
        "/api/logs",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Request body must be valid JSON"}


async def test_insert_losing_its_project_is_500(client, demo_project, monkeypatch):
    async def project_deleted_meanwhile(*args, **kwargs):
        raise ReferentialError("Cannot insert log for unknown project 'demo'")

    monkeypatch.setattr(ingest_router, "insert_log", project_deleted_meanwhile)

    response = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "info", "message": "hi"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to store the log event"}


async def test_ingest_keeps_client_timestamp(client, session, demo_project):
    await client.post(
        "/api/logs",
        json={
            "project-id": "demo",
            "level": "warn",
            "message": "late",
            "timestamp": "2026-01-01T12:00:00Z",
        },
    )

    events, _ = await query_logs(session, LogFilters(), limit=1)
    assert events[0].timestamp.replace(tzinfo=None).isoformat() == "2026-01-01T12:00:00"


async def test_end_to_end_demo_flow(client, admin_headers, broadcaster):
    created = await client.post(
        "/api/logs/projects",
        json={"id": "demo", "name": "Demo", "origins": ["https://demo.app"]},
        headers=admin_headers,
    )
    assert created.status_code == 201

    frames = sse_log_frames(broadcaster.subscribe(), heartbeat_seconds=5)
    assert json.loads((await frames.__anext__())[len("data: "):]) == {"type": "connected"}

    ok = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "error", "message": "boom", "userId": 7},
        headers={"Origin": "https://demo.app"},
    )
    assert ok.status_code == 201

    frame = await asyncio.wait_for(frames.__anext__(), timeout=1)
    assert frame.startswith("data: ") and frame.endswith("\n\n")
    streamed = json.loads(frame[len("data: "):])
    assert streamed["type"] == "log"
    assert streamed["log"]["project-id"] == "demo"
    assert streamed["log"]["level"] == "error"
    assert streamed["log"]["message"] == "boom"
    assert streamed["log"]["metadata"] == {"userId": 7}
    await frames.aclose()

    rejected = await client.post(
        "/api/logs",
        json={"project-id": "demo", "level": "error", "message": "boom"},
        headers={"Origin": "https://evil.com"},
    )
    assert rejected.status_code == 403

    page = await client.get(
        "/api/logs",
        params={"project-id": "demo", "level": "error", "limit": 10},
        headers=admin_headers,
    )
    assert page.status_code == 200
    body = page.json()
    assert body["total"] == 1
    assert body["limit"] == 10
    assert body["logs"][0]["id"] == streamed["log"]["id"]
    assert body["logs"][0]["metadata"] == {"userId": 7}
    assert body["logs"][0]["project-id"] == "demo"
