"""
Unit tests for TimeSlotService.

Covers interval validation (ordering, past start, duration bounds), overlap
rejection, status transitions and cache invalidation.
"""

import uuid
from datetime import datetime, timedelta

import pytest
from unittest.mock import MagicMock

from meeting_scheduler.core.cache import time_slot_key
from meeting_scheduler.core.exceptions import (
    CalendarNotFoundError,
    InvalidArgumentError,
    InvalidStateError,
    TimeConflictError,
    TimeSlotNotFoundError,
)
from meeting_scheduler.models.time_slot import SlotStatus
from meeting_scheduler.services.time_slot_service import TimeSlotService
from tests.factories import CalendarFactory, TimeSlotFactory, MeetingFactory, future, get_slot_status


class TestValidateTimeSlot:
    def _service(self):
        return TimeSlotService(MagicMock())

    def test_start_after_end(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            self._service().validate_time_slot(future(hour=10), future(hour=9))
        assert exc_info.value.message == "Start time must be before end time"

    def test_start_equals_end(self):
        with pytest.raises(InvalidArgumentError):
            self._service().validate_time_slot(future(hour=10), future(hour=10))

    def test_start_in_past(self):
        start = datetime.utcnow() - timedelta(hours=1)
        with pytest.raises(InvalidArgumentError) as exc_info:
            self._service().validate_time_slot(start, start + timedelta(minutes=30))
        assert exc_info.value.message == "Cannot create time slot in the past"

    @pytest.mark.parametrize("minutes", [15, 60, 480])
    def test_duration_within_bounds(self, minutes):
        start = future(hour=8)
        self._service().validate_time_slot(start, start + timedelta(minutes=minutes))

    @pytest.mark.parametrize("minutes", [14, 481])
    def test_duration_out_of_bounds(self, minutes):
        start = future(hour=8)
        with pytest.raises(InvalidArgumentError) as exc_info:
            self._service().validate_time_slot(start, start + timedelta(minutes=minutes))
        assert exc_info.value.message == "Time slot duration must be between 15 minutes and 8 hours"


class TestCreateTimeSlot:
    @pytest.mark.asyncio
    async def test_create_defaults_available(self, db_session, test_calendar):
        slot = await TimeSlotService(db_session).create_time_slot(
            test_calendar.id, future(hour=9), future(hour=10)
        )

        assert slot.status == SlotStatus.AVAILABLE.value
        assert slot.calendar_id == test_calendar.id

    @pytest.mark.asyncio
    async def test_missing_calendar(self, db_session):
        with pytest.raises(CalendarNotFoundError):
            await TimeSlotService(db_session).create_time_slot(
                uuid.uuid4(), future(hour=9), future(hour=10)
            )

    @pytest.mark.asyncio
    async def test_overlap_rejected(self, db_session, test_calendar):
        service = TimeSlotService(db_session)
        await service.create_time_slot(test_calendar.id, future(hour=9), future(hour=10))

        with pytest.raises(TimeConflictError) as exc_info:
            await service.create_time_slot(
                test_calendar.id, future(hour=9, minute=30), future(hour=10, minute=30)
            )
        assert exc_info.value.message == "Time slot overlaps with existing slot"

    @pytest.mark.asyncio
    async def test_adjacent_slot_allowed(self, db_session, test_calendar):
        service = TimeSlotService(db_session)
        await service.create_time_slot(test_calendar.id, future(hour=9), future(hour=10))

        slot = await service.create_time_slot(test_calendar.id, future(hour=10), future(hour=11))

        assert slot.start_time == future(hour=10)

    @pytest.mark.asyncio
    async def test_same_interval_other_calendar(self, db_session, test_calendar):
        other = await CalendarFactory.create(db_session, name="Other")
        service = TimeSlotService(db_session)
        await service.create_time_slot(test_calendar.id, future(hour=9), future(hour=10))

        slot = await service.create_time_slot(other.id, future(hour=9), future(hour=10))

        assert slot.calendar_id == other.id

    @pytest.mark.asyncio
    async def test_create_drops_available_cache(self, db_session, test_calendar):
        service = TimeSlotService(db_session)
        start, end = future(hour=0), future(hour=23)
        assert await service.get_available_slots(test_calendar.id, start, end) == []

        await service.create_time_slot(test_calendar.id, future(hour=9), future(hour=10))

        assert len(await service.get_available_slots(test_calendar.id, start, end)) == 1


class TestUpdateTimeSlot:
    @pytest.mark.asyncio
    async def test_update_can_overlap_itself(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))

        updated = await TimeSlotService(db_session).update_time_slot(
            slot.id, future(hour=9, minute=30), future(hour=10, minute=30), SlotStatus.BUSY
        )

        assert updated.start_time == future(hour=9, minute=30)
        assert updated.status == SlotStatus.BUSY.value

    @pytest.mark.asyncio
    async def test_update_overlapping_other(self, db_session, test_calendar):
        await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=11))

        with pytest.raises(TimeConflictError) as exc_info:
            await TimeSlotService(db_session).update_time_slot(
                slot.id, future(hour=9, minute=30), future(hour=11, minute=30)
            )
        assert exc_info.value.message == "Updated time slot would overlap with existing slot"

    @pytest.mark.asyncio
    async def test_update_validates_interval(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)

        with pytest.raises(InvalidArgumentError):
            await TimeSlotService(db_session).update_time_slot(
                slot.id, future(hour=9), future(hour=9, minute=10)
            )

    @pytest.mark.asyncio
    async def test_update_missing(self, db_session):
        with pytest.raises(TimeSlotNotFoundError):
            await TimeSlotService(db_session).update_time_slot(
                uuid.uuid4(), future(hour=9), future(hour=10)
            )

    @pytest.mark.asyncio
    async def test_update_invalidates_view(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        service = TimeSlotService(db_session)
        await service.get_time_slot_view(slot.id)

        await service.update_time_slot(slot.id, future(hour=12), future(hour=13))

        assert (await service.get_time_slot_view(slot.id)).start_time == future(hour=12)


    @pytest.mark.asyncio
    async def test_update_keeps_status_when_omitted(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        await MeetingFactory.create(db_session, slot)
        service = TimeSlotService(db_session)

        moved = await service.update_time_slot(
            slot.id, future(hour=9, minute=30), future(hour=10, minute=30)
        )

        assert moved.status == SlotStatus.BUSY.value
        assert await get_slot_status(db_session, slot.id) == "BUSY"
        available = await service.get_available_slots(
            test_calendar.id, future(hour=0), future(hour=23)
        )
        assert available == []

    @pytest.mark.asyncio
    async def test_update_to_available_with_meeting(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        await MeetingFactory.create(db_session, slot)

        with pytest.raises(InvalidStateError) as exc_info:
            await TimeSlotService(db_session).update_time_slot(
                slot.id, future(hour=9), future(hour=10), SlotStatus.AVAILABLE
            )

        assert exc_info.value.message == "Cannot mark time slot with scheduled meeting as available"
        assert await get_slot_status(db_session, slot.id) == "BUSY"


class TestDeleteTimeSlot:
    @pytest.mark.asyncio
    async def test_delete_free_slot(self, db_session, test_calendar, fresh_cache):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        service = TimeSlotService(db_session)
        await service.get_time_slot_view(slot.id)

        await service.delete_time_slot(slot.id)

        assert await fresh_cache.get(time_slot_key(slot.id)) is None
        with pytest.raises(TimeSlotNotFoundError):
            await service.get_time_slot(slot.id)

    @pytest.mark.asyncio
    async def test_delete_slot_with_meeting(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        await MeetingFactory.create(db_session, slot)

        with pytest.raises(InvalidStateError) as exc_info:
            await TimeSlotService(db_session).delete_time_slot(slot.id)
        assert exc_info.value.message == "Cannot delete time slot with scheduled meeting"


class TestStatusTransitions:
    @pytest.mark.asyncio
    async def test_mark_busy_then_available(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        service = TimeSlotService(db_session)

        assert (await service.mark_slot_busy(slot.id)).status == "BUSY"
        assert (await service.mark_slot_available(slot.id)).status == "AVAILABLE"

    @pytest.mark.asyncio
    async def test_mark_is_idempotent(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        service = TimeSlotService(db_session)

        await service.mark_slot_busy(slot.id)
        again = await service.mark_slot_busy(slot.id)

        assert again.status == "BUSY"
        assert await get_slot_status(db_session, slot.id) == "BUSY"

    @pytest.mark.asyncio
    async def test_mark_available_with_meeting(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        await MeetingFactory.create(db_session, slot)

        with pytest.raises(InvalidStateError):
            await TimeSlotService(db_session).mark_slot_available(slot.id)

        assert await get_slot_status(db_session, slot.id) == "BUSY"

    @pytest.mark.asyncio
    async def test_mark_missing(self, db_session):
        with pytest.raises(TimeSlotNotFoundError):
            await TimeSlotService(db_session).mark_slot_busy(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_claim_slot_once(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar)
        service = TimeSlotService(db_session)

        assert await service.claim_slot(slot) is True
        assert await service.claim_slot(slot) is False


class TestSlotQueries:
    @pytest.mark.asyncio
    async def test_list_by_calendar_checks_calendar(self, db_session):
        with pytest.raises(CalendarNotFoundError):
            await TimeSlotService(db_session).list_time_slots_by_calendar(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_in_range_with_status(self, db_session, test_calendar):
        await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        busy = await TimeSlotFactory.create(
            db_session, test_calendar, start_time=future(hour=11), status=SlotStatus.BUSY
        )

        slots, total = await TimeSlotService(db_session).list_time_slots_in_range(
            test_calendar.id, future(hour=0), future(hour=23), status=SlotStatus.BUSY
        )

        assert total == 1
        assert slots[0].id == busy.id

    @pytest.mark.asyncio
    async def test_has_overlapping_slots(self, db_session, test_calendar):
        slot = await TimeSlotFactory.create(db_session, test_calendar, start_time=future(hour=9))
        service = TimeSlotService(db_session)

        assert await service.has_overlapping_slots(test_calendar.id, future(hour=9), future(hour=10))
        assert not await service.has_overlapping_slots(
            test_calendar.id, future(hour=9), future(hour=10), exclude_id=slot.id
        )

    @pytest.mark.asyncio
    async def test_busy_slots_by_users(self, db_session):
        alice = await CalendarFactory.create(db_session, name="A", user_id="alice")
        busy = await TimeSlotFactory.create(db_session, alice, status=SlotStatus.BUSY)

        slots = await TimeSlotService(db_session).get_busy_slots_by_users(
            ["alice"], future(hour=0), future(hour=23)
        )

        assert [s.id for s in slots] == [busy.id]

    @pytest.mark.asyncio
    async def test_slot_count_by_date(self, db_session, test_calendar):
        await TimeSlotFactory.create_batch(db_session, test_calendar, 3)

        rows = await TimeSlotService(db_session).get_slot_count_by_date(
            test_calendar.id, future(hour=0), future(days=2, hour=0)
        )

        assert rows == [(future().date(), 3)]
