"""
Integration tests for the time slot API.
"""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from meeting_scheduler.models.time_slot import SlotStatus
from tests.factories import CalendarFactory, TimeSlotFactory, MeetingFactory, future


def slots_url(calendar_id) -> str:
    return f"/api/v1/calendars/{calendar_id}/slots"


class TestCreateSlot:
    @pytest.mark.asyncio
    async def test_create_slot(self, client: AsyncClient, test_calendar):
        response = await client.post(
            slots_url(test_calendar.id),
            json={
                "start_time": future(hour=9).isoformat(),
                "end_time": future(hour=10).isoformat(),
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "AVAILABLE"
        assert data["calendar_id"] == str(test_calendar.id)

    @pytest.mark.asyncio
    async def test_offset_datetimes_normalized_to_utc(self, client: AsyncClient, test_calendar):
        start = future(hour=9)
        response = await client.post(
            slots_url(test_calendar.id),
            json={
                "start_time": (start + timedelta(hours=2)).isoformat() + "+02:00",
                "end_time": (start + timedelta(hours=3)).isoformat() + "+02:00",
            },
        )

        assert response.status_code == 201
        assert response.json()["start_time"] == start.isoformat()

    @pytest.mark.asyncio
    async def test_overlap_conflict(self, client: AsyncClient, db_session: AsyncSession, test_calendar):
        await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))

        response = await client.post(
            slots_url(test_calendar.id),
            json={
                "start_time": future(hour=9, minute=30).isoformat(),
                "end_time": future(hour=10, minute=30).isoformat(),
            },
        )

        assert response.status_code == 409
        assert response.json()["code"] == "TIME_CONFLICT"

    @pytest.mark.asyncio
    async def test_too_short(self, client: AsyncClient, test_calendar):
        response = await client.post(
            slots_url(test_calendar.id),
            json={
                "start_time": future(hour=9).isoformat(),
                "end_time": future(hour=9, minute=14).isoformat(),
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_ARGUMENT"
        assert body["message"] == "Time slot duration must be between 15 minutes and 8 hours"

    @pytest.mark.asyncio
    async def test_unknown_calendar(self, client: AsyncClient):
        response = await client.post(
            slots_url(uuid.uuid4()),
            json={
                "start_time": future(hour=9).isoformat(),
                "end_time": future(hour=10).isoformat(),
            },
        )
        assert response.status_code == 404


class TestReadSlots:
    @pytest.mark.asyncio
    async def test_get_slot(self, client: AsyncClient, db_session: AsyncSession, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)

        response = await client.get(f"{slots_url(test_calendar.id)}/{slot.id}")

        assert response.status_code == 200
        assert response.json()["id"] == str(slot.id)

    @pytest.mark.asyncio
    async def test_slot_from_other_calendar_is_not_found(
        self, client: AsyncClient, db_session: AsyncSession, test_calendar
    ):
        other = await CalendarFactory.create(db_session, name="Other")
        slot = await TimeSlotFactory.create(db_session, other)

        response = await client.get(f"{slots_url(test_calendar.id)}/{slot.id}")
        delete = await client.delete(f"{slots_url(test_calendar.id)}/{slot.id}")

        assert response.status_code == 404
        assert delete.status_code == 404

    @pytest.mark.asyncio
    async def test_list_only_this_calendar(
        self, client: AsyncClient, db_session: AsyncSession, test_calendar
    ):
        other = await CalendarFactory.create(db_session, name="Other")
        await TimeSlotFactory.create_batch(db_session, test_calendar, 2)
        await TimeSlotFactory.create(db_session, other)

        response = await client.get(slots_url(test_calendar.id))

        data = response.json()
        assert data["total"] == 2
        assert all(item["calendar_id"] == str(test_calendar.id) for item in data["items"])

    @pytest.mark.asyncio
    async def test_list_by_days_and_status(
        self, client: AsyncClient, db_session: AsyncSession, test_calendar
    ):
        await TimeSlotFactory.create(db_session, test_calendar, start_time=future(days=1))
        busy = await TimeSlotFactory.create(
            db_session, test_calendar, start_time=future(days=1, hour=13), status=SlotStatus.BUSY
        )
        await TimeSlotFactory.create(db_session, test_calendar, start_time=future(days=3))
        day = future(days=1).date().isoformat()

        response = await client.get(
            slots_url(test_calendar.id),
            params={"start_date": day, "end_date": day, "status": "BUSY"},
        )

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == str(busy.id)

    @pytest.mark.asyncio
    async def test_available_overlap_and_counts(
        self, client: AsyncClient, db_session: AsyncSession, test_calendar
    ):
        free = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        await TimeSlotFactory.create(
            db_session, test_calendar, start_time=future(hour=11), status=SlotStatus.BUSY
        )
        day = future().date().isoformat()
        base = slots_url(test_calendar.id)

        available = await client.get(f"{base}/available", params={"start_date": day, "end_date": day})
        overlap = await client.get(
            f"{base}/overlap",
            params={
                "start_time": future(hour=9, minute=30).isoformat(),
                "end_time": future(hour=10, minute=30).isoformat(),
            },
        )
        excluded = await client.get(
            f"{base}/overlap",
            params={
                "start_time": future(hour=9).isoformat(),
                "end_time": future(hour=10).isoformat(),
                "exclude_id": str(free.id),
            },
        )
        counts = await client.get(f"{base}/counts", params={"start_date": day, "end_date": day})

        assert [s["id"] for s in available.json()] == [str(free.id)]
        assert overlap.json() == {"overlapping": True}
        assert excluded.json() == {"overlapping": False}
        assert counts.json() == {"items": [{"date": day, "count": 2}]}

    @pytest.mark.asyncio
    async def test_busy_slots_for_users(self, client: AsyncClient, db_session: AsyncSession):
        alice = await CalendarFactory.create(db_session, name="A", user_id="alice")
        bob = await CalendarFactory.create(db_session, name="B", user_id="bob")
        a_busy = await TimeSlotFactory.create(db_session, alice, start_time=future(hour=9), status=SlotStatus.BUSY)
        b_busy = await TimeSlotFactory.create(db_session, bob, start_time=future(hour=8), status=SlotStatus.BUSY)
        day = future().date().isoformat()

        response = await client.get(
            "/api/v1/slots/busy",
            params={"user_ids": "alice,bob", "start_date": day, "end_date": day},
        )

        assert response.status_code == 200
        assert [s["id"] for s in response.json()] == [str(b_busy.id), str(a_busy.id)]


class TestModifySlots:
    @pytest.mark.asyncio
    async def test_update_slot(self, client: AsyncClient, db_session: AsyncSession, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))

        response = await client.put(
            f"{slots_url(test_calendar.id)}/{slot.id}",
            json={
                "start_time": future(hour=14).isoformat(),
                "end_time": future(hour=15).isoformat(),
                "status": "BUSY",
            },
        )

        assert response.status_code == 200
        assert response.json()["status"] == "BUSY"
        assert response.json()["start_time"] == future(hour=14).isoformat()

    @pytest.mark.asyncio
    async def test_move_booked_slot_stays_busy(
        self, client: AsyncClient, db_session: AsyncSession, test_calendar
    ):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        await MeetingFactory.create(db_session, slot)
        url = f"{slots_url(test_calendar.id)}/{slot.id}"
        day = future().date().isoformat()

        moved = await client.put(
            url,
            json={
                "start_time": future(hour=14).isoformat(),
                "end_time": future(hour=15).isoformat(),
            },
        )
        freed = await client.put(
            url,
            json={
                "start_time": future(hour=14).isoformat(),
                "end_time": future(hour=15).isoformat(),
                "status": "AVAILABLE",
            },
        )
        available = await client.get(
            f"{slots_url(test_calendar.id)}/available", params={"start_date": day, "end_date": day}
        )

        assert moved.status_code == 200
        assert moved.json()["status"] == "BUSY"
        assert freed.status_code == 409
        assert freed.json()["code"] == "INVALID_STATE"
        assert available.json() == []

    @pytest.mark.asyncio
    async def test_patch_status(self, client: AsyncClient, db_session: AsyncSession, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        url = f"{slots_url(test_calendar.id)}/{slot.id}/status"

        busy = await client.patch(url, params={"status": "BUSY"})
        again = await client.patch(url, params={"status": "BUSY"})
        available = await client.patch(url, params={"status": "AVAILABLE"})

        assert busy.json()["status"] == "BUSY"
        assert again.json()["status"] == "BUSY"
        assert available.json()["status"] == "AVAILABLE"

    @pytest.mark.asyncio
    async def test_delete_slot(self, client: AsyncClient, db_session: AsyncSession, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        url = f"{slots_url(test_calendar.id)}/{slot.id}"

        response = await client.delete(url)

        assert response.status_code == 204
        assert (await client.get(url)).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_slot_with_meeting(
        self, client: AsyncClient, db_session: AsyncSession, test_calendar
    ):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        await MeetingFactory.create(db_session, slot)

        response = await client.delete(f"{slots_url(test_calendar.id)}/{slot.id}")

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"
