"""HTTP-level tests for room, participant and moderation endpoints."""
from __future__ import annotations

import httpx
import pytest

from app.main import app
from app.services.media import MediaClient, get_media_client
from conftest import auth_headers


@pytest.mark.asyncio
async def test_guest_room_lifecycle_over_http(client):
    created = await client.post("/api/public/rooms", json={"name": "standup"})
    assert created.status_code == 201
    body = created.json()
    assert body["is_guest_room"] is True
    assert body["max_duration"] == 30
    assert body["time_remaining"] in (29, 30)

    duplicate = await client.post("/api/public/rooms", json={"name": "standup"})
    assert duplicate.status_code == 409

    joined = await client.post("/api/public/rooms/standup/join", json={"identity": "alice", "name": "Alice"})
    rejoined = await client.post("/api/public/rooms/standup/join", json={"identity": "alice", "name": "Alice"})
    assert joined.status_code == 200
    assert joined.json()["is_guest"] is True
    assert joined.json()["room_expires_at"] is not None
    assert rejoined.json()["participant_id"] == joined.json()["participant_id"]

    roster = await client.get("/api/public/rooms/standup/participants")
    assert roster.json()["count"] == 1
    assert roster.json()["participants"][0]["identity"] == "alice"

    left = await client.post("/api/public/rooms/standup/leave/alice")
    assert left.status_code == 200
    again = await client.post("/api/public/rooms/standup/leave/alice")
    assert again.status_code == 404

    stats = await client.get("/api/public/rooms/standup")
    assert stats.status_code == 200
    assert stats.json()["active_participants"] == 0
    assert stats.json()["total_participants"] == 1


@pytest.mark.asyncio
async def test_authenticated_room_over_http(client):
    headers = auth_headers("u1")

    created = await client.post("/api/public/rooms", json={"name": "team-sync"}, headers=headers)
    assert created.status_code == 201
    assert created.json()["is_guest_room"] is False
    assert created.json()["expires_at"] is None
    assert created.json()["time_remaining"] is None

    joined = await client.post(
        "/api/public/rooms/team-sync/join", json={"identity": "u1-web", "name": "User One"}, headers=headers
    )
    assert joined.json()["is_guest"] is False
    assert joined.json()["user_id"] == "u1"

    extended = await client.post("/api/rooms/team-sync/extend", json={"additional_minutes": 10})
    assert extended.status_code == 400

    stats = await client.get("/api/rooms/team-sync/stats", headers=headers)
    assert stats.json()["time_remaining"] == -1

    deleted = await client.delete("/api/rooms/team-sync", headers=headers)
    assert deleted.status_code == 200

    missing = await client.get("/api/public/rooms/team-sync")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_extend_guest_room_over_http(client):
    await client.post("/api/public/rooms", json={"name": "standup"})

    response = await client.post("/api/rooms/standup/extend", json={"additional_minutes": 15})
    assert response.status_code == 200
    assert response.json()["time_remaining"] in (44, 45)

    too_long = await client.post("/api/rooms/standup/extend", json={"additional_minutes": 61})
    assert too_long.status_code == 422


@pytest.mark.asyncio
async def test_deactivation_requires_owner_or_admin(client):
    await client.post("/api/public/rooms", json={"name": "team-sync"}, headers=auth_headers("owner"))

    anonymous = await client.delete("/api/rooms/team-sync")
    assert anonymous.status_code == 401

    stranger = await client.delete("/api/rooms/team-sync", headers=auth_headers("stranger"))
    assert stranger.status_code == 403

    admin = await client.delete("/api/rooms/team-sync", headers=auth_headers("boss", groups=("meet-admin",)))
    assert admin.status_code == 200


@pytest.mark.asyncio
async def test_invalid_bearer_token_is_rejected(client):
    response = await client.post(
        "/api/public/rooms", json={"name": "standup"}, headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_endpoint(client):
    response = await client.get("/api/auth/me", headers=auth_headers("u1", groups=("recording",)))

    assert response.status_code == 200
    assert response.json()["id"] == "u1"
    assert response.json()["groups"] == ["recording"]


@pytest.mark.asyncio
async def test_join_token_for_guest_and_member(client):
    await client.post("/api/public/rooms", json={"name": "standup"})

    anonymous = await client.post("/api/rooms/standup/token", json={})
    assert anonymous.status_code == 400

    guest = await client.post("/api/rooms/standup/token", json={"identity": "alice", "can_record": True})
    assert guest.status_code == 200
    assert guest.json()["identity"] == "alice"
    assert guest.json()["expires_in"] <= 30 * 60

    member = await client.post("/api/rooms/standup/token", json={}, headers=auth_headers("u1", name="User One"))
    assert member.json()["identity"] == "u1"
    assert member.json()["name"] == "User One"

    missing = await client.post("/api/rooms/nowhere/token", json={"identity": "alice"})
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_moderation_endpoints_check_groups(client):
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        calls.append(method)
        if method == "ListEgress":
            return httpx.Response(200, json={"items": []})
        if method == "StartRoomCompositeEgress":
            return httpx.Response(200, json={"egress_id": "EG_1", "status": "EGRESS_STARTING"})
        return httpx.Response(200, json={})

    app.dependency_overrides[get_media_client] = lambda: MediaClient(
        "http://media.test", transport=httpx.MockTransport(handler)
    )

    denied = await client.delete("/api/rooms/standup/participants/bob", headers=auth_headers("u1"))
    assert denied.status_code == 403
    assert calls == []

    removed = await client.delete(
        "/api/rooms/standup/participants/bob", headers=auth_headers("u1", groups=("admin",))
    )
    assert removed.status_code == 200
    assert calls == ["RemoveParticipant"]

    recorder = auth_headers("u2", groups=("recording",))
    started = await client.post("/api/rooms/standup/recording/start", headers=recorder)
    assert started.status_code == 200
    assert started.json()["egress_id"] == "EG_1"

    stopped = await client.post("/api/rooms/standup/recording/stop", headers=recorder)
    assert stopped.status_code == 404
