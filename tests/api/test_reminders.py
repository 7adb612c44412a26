"""API tests for reminder endpoints."""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient


def _future(days: int = 1) -> str:
    instant = datetime.now(UTC).replace(microsecond=0) + timedelta(days=days)
    return instant.isoformat()


async def _create(client: AsyncClient, **overrides) -> dict:
    body = {
        "title": "Standup",
        "anchor_at": _future(),
        "rrule": "FREQ=DAILY",
        "alert_offsets": [0, 15],
    }
    body.update(overrides)
    response = await client.post("/api/reminders", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateReminder:
    async def test_create_recurring(self, client: AsyncClient):
        data = await _create(client)

        assert data["title"] == "Standup"
        assert data["rrule"] == "FREQ=DAILY"
        assert data["recurrence_description"] == "Every day"
        assert data["alert_offsets"] == [0, 15]
        assert data["active"] is True
        assert data["next_occurrence"] is not None

    async def test_create_schedules_notifications(self, client: AsyncClient):
        data = await _create(client)

        schedule = (await client.get(f"/api/reminders/{data['id']}/schedule")).json()

        # 10 occurrences x 2 offsets, all in the future
        assert len(schedule["entries"]) == 20
        fires = [e["fires_at"] for e in schedule["entries"]]
        assert fires == sorted(fires)
        assert schedule["recurrence_description"] == "Every day"

    async def test_one_time(self, client: AsyncClient):
        data = await _create(client, rrule=None, alert_offsets=[0])

        assert data["recurrence_description"] == "One-time"
        schedule = (await client.get(f"/api/reminders/{data['id']}/schedule")).json()
        assert len(schedule["entries"]) == 1

    async def test_invalid_rule_is_422(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders",
            json={"title": "x", "anchor_at": _future(), "rrule": "FREQ=SOMETIMES"},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_RULE"

    async def test_negative_offset_is_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders",
            json={"title": "x", "anchor_at": _future(), "alert_offsets": [-5]},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_oversized_offset_is_rejected_before_saving(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders",
            json={"title": "x", "anchor_at": _future(), "alert_offsets": [10**12]},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert (await client.get("/api/reminders")).json()["total"] == 0

    async def test_oversized_offset_on_update_keeps_reminder(self, client: AsyncClient):
        created = await _create(client)

        response = await client.put(
            f"/api/reminders/{created['id']}", json={"alert_offsets": [0, 10**12]}
        )

        assert response.status_code == 422
        current = (await client.get(f"/api/reminders/{created['id']}")).json()
        assert current["alert_offsets"] == [0, 15]

    async def test_rule_that_never_matches_has_empty_schedule(self, client: AsyncClient):
        data = await _create(client, rrule="FREQ=DAILY;BYMONTH=2;BYMONTHDAY=30")

        schedule = (await client.get(f"/api/reminders/{data['id']}/schedule")).json()
        assert schedule["entries"] == []
        assert data["next_occurrence"] is None

    async def test_unknown_timezone_is_400(self, client: AsyncClient):
        response = await client.post(
            "/api/reminders",
            json={"title": "x", "anchor_at": _future(), "timezone": "Mars/Olympus"},
        )

        assert response.status_code == 400


class TestReadReminders:
    async def test_get_and_list(self, client: AsyncClient):
        created = await _create(client)
        await _create(client, title="Paused", active=False)

        fetched = (await client.get(f"/api/reminders/{created['id']}")).json()
        everything = (await client.get("/api/reminders")).json()
        active = (await client.get("/api/reminders", params={"active_only": True})).json()

        assert fetched["id"] == created["id"]
        assert everything["total"] == 2
        assert [r["title"] for r in active["reminders"]] == ["Standup"]

    async def test_missing_is_404(self, client: AsyncClient):
        response = await client.get("/api/reminders/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error_code"] == "REMINDER_NOT_FOUND"


class TestUpdateReminder:
    async def test_partial_update_reschedules(self, client: AsyncClient):
        created = await _create(client)

        response = await client.put(
            f"/api/reminders/{created['id']}",
            json={"title": "Team standup", "alert_offsets": [30]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Team standup"
        assert data["rrule"] == "FREQ=DAILY"

        schedule = (await client.get(f"/api/reminders/{created['id']}/schedule")).json()
        assert len(schedule["entries"]) == 10
        assert {e["offset_minutes"] for e in schedule["entries"]} == {30}

    async def test_clear_rule(self, client: AsyncClient):
        created = await _create(client)

        data = (await client.put(f"/api/reminders/{created['id']}", json={"rrule": ""})).json()

        assert data["rrule"] is None
        assert data["recurrence_description"] == "One-time"

    async def test_update_missing_is_404(self, client: AsyncClient):
        response = await client.put("/api/reminders/nope", json={"title": "x"})
        assert response.status_code == 404


class TestPauseResume:
    async def test_pause_clears_and_resume_restores(self, client: AsyncClient):
        created = await _create(client)
        schedule_url = f"/api/reminders/{created['id']}/schedule"

        paused = (await client.post(f"/api/reminders/{created['id']}/pause")).json()
        assert paused["active"] is False
        assert paused["next_occurrence"] is None
        assert (await client.get(schedule_url)).json()["entries"] == []

        resumed = (await client.post(f"/api/reminders/{created['id']}/resume")).json()
        assert resumed["active"] is True
        assert len((await client.get(schedule_url)).json()["entries"]) == 20


class TestDeleteReminder:
    async def test_delete_hides_reminder(self, client: AsyncClient, services):
        created = await _create(client)

        response = await client.delete(f"/api/reminders/{created['id']}")

        assert response.status_code == 204
        assert (await client.get(f"/api/reminders/{created['id']}")).status_code == 404
        assert (await client.get("/api/reminders")).json()["total"] == 0
        assert await services.schedule_store.list_unsent(created["id"]) == []

    async def test_delete_twice_is_404(self, client: AsyncClient):
        created = await _create(client)

        await client.delete(f"/api/reminders/{created['id']}")
        response = await client.delete(f"/api/reminders/{created['id']}")

        assert response.status_code == 404


class TestScheduleHistory:
    async def test_include_sent_returns_delivered_entries(self, client: AsyncClient, services):
        created = await _create(client, alert_offsets=[0])
        schedule_url = f"/api/reminders/{created['id']}/schedule"
        first = (await client.get(schedule_url)).json()["entries"][0]

        await services.schedule_store.mark_sent(first["id"])

        pending = (await client.get(schedule_url)).json()["entries"]
        history = (await client.get(schedule_url, params={"include_sent": "true"})).json()["entries"]
        assert first["id"] not in [e["id"] for e in pending]
        assert history[0]["id"] == first["id"]
        assert history[0]["sent"] is True
        assert len(history) == len(pending) + 1
