"""Tests for celebration API endpoints and the SSE event manager.

Covers:
  - POST /celebrations (queue, validation)
  - GET /celebrations/current (snapshot)
  - POST /celebrations/dismiss (promotion, stale ids)
  - EventManager fan-out of display/dismiss notifications
"""
import json


class TestSubmitCelebration:

    async def test_submit_displays_when_idle(self, client):
        response = await client.post("/api/v1/celebrations", json={"type": "XP_GAIN", "title": "+10 XP", "value": 10})

        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "XP_GAIN"
        assert data["priority"] == 1
        assert data["duration_ms"] == 1500
        assert data["display_style"] == "inline"
        assert client._scheduler.current.id == data["id"]

    async def test_unknown_type_rejected(self, client):
        response = await client.post("/api/v1/celebrations", json={"type": "FIREWORKS", "title": "x"})
        assert response.status_code == 422

    async def test_empty_title_rejected(self, client):
        response = await client.post("/api/v1/celebrations", json={"type": "XP_GAIN", "title": ""})
        assert response.status_code == 422


class TestQueueState:

    async def test_idle(self, client):
        response = await client.get("/api/v1/celebrations/current")

        assert response.status_code == 200
        assert response.json() == {"current": None, "pending": [], "is_displaying": False}

    async def test_priority_order(self, client):
        for type_name in ("STREAK_SAVE", "XP_GAIN", "LEVEL_UP", "BADGE_UNLOCK"):
            await client.post("/api/v1/celebrations", json={"type": type_name, "title": type_name})

        data = (await client.get("/api/v1/celebrations/current")).json()

        assert data["is_displaying"] is True
        assert data["current"]["type"] == "STREAK_SAVE"
        assert [e["type"] for e in data["pending"]] == ["LEVEL_UP", "BADGE_UNLOCK", "XP_GAIN"]


class TestDismiss:

    async def test_dismiss_promotes_next(self, client):
        await client.post("/api/v1/celebrations", json={"type": "XP_GAIN", "title": "first"})
        await client.post("/api/v1/celebrations", json={"type": "LEVEL_UP", "title": "Seviye 2!"})

        response = await client.post("/api/v1/celebrations/dismiss")

        assert response.status_code == 200
        data = response.json()
        assert data["dismissed"] is True
        assert data["state"]["current"]["title"] == "Seviye 2!"

    async def test_dismiss_when_idle(self, client):
        response = await client.post("/api/v1/celebrations/dismiss")
        assert response.json()["dismissed"] is False

    async def test_stale_id_does_not_dismiss_next(self, client):
        first = (await client.post("/api/v1/celebrations", json={"type": "XP_GAIN", "title": "a"})).json()
        await client.post("/api/v1/celebrations", json={"type": "XP_GAIN", "title": "b"})
        await client.post("/api/v1/celebrations/dismiss", json={"id": first["id"]})

        response = await client.post("/api/v1/celebrations/dismiss", json={"id": first["id"]})

        data = response.json()
        assert data["dismissed"] is False
        assert data["state"]["current"]["title"] == "b"


class TestStreamRoute:

    def test_stream_route_registered(self):
        from ioo_rewards.main import app
        paths = {route.path for route in app.routes}
        assert "/api/v1/celebrations/stream" in paths


class TestEventManager:

    async def test_subscriber_receives_connected_then_events(self):
        from ioo_rewards.services.celebrations import CelebrationScheduler
        from ioo_rewards.services.events import EventManager

        events = EventManager()
        scheduler = CelebrationScheduler()
        scheduler.add_listener(events.publish)

        stream = events.subscribe()
        connected = await stream.__anext__()
        assert json.loads(connected.removeprefix("data: "))["type"] == "connected"
        assert events.client_count == 1

        scheduler.celebrate_badge("İlk Çizgi", "✏️")
        scheduler.dismiss()

        display = json.loads((await stream.__anext__()).removeprefix("data: "))
        dismiss = json.loads((await stream.__anext__()).removeprefix("data: "))

        assert display["type"] == "display"
        assert display["celebration"]["title"] == "İlk Çizgi"
        assert dismiss["type"] == "dismiss"

        await stream.aclose()
        assert events.client_count == 0

    async def test_sse_framing(self):
        from ioo_rewards.services.events import EventManager

        stream = EventManager().subscribe()
        message = await stream.__anext__()
        await stream.aclose()

        assert message.startswith("data: ")
        assert message.endswith("\n\n")

    async def test_full_client_queue_drops_event(self):
        from ioo_rewards.services.celebrations import CelebrationEvent, CelebrationType
        from ioo_rewards.services.events import EventManager

        events = EventManager(max_queue_size=1)
        stream = events.subscribe()
        await stream.__anext__()

        event = CelebrationEvent(type=CelebrationType.XP_GAIN, title="+1 XP")
        events.publish("display", event)
        events.publish("dismiss", event)

        first = json.loads((await stream.__anext__()).removeprefix("data: "))
        assert first["type"] == "display"
        await stream.aclose()

    def test_broadcast_without_clients(self):
        from ioo_rewards.services.celebrations import CelebrationEvent, CelebrationType
        from ioo_rewards.services.events import EventManager

        events = EventManager()
        events.publish("display", CelebrationEvent(type=CelebrationType.XP_GAIN, title="+1 XP"))
        assert events.client_count == 0
