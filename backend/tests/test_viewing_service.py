import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, Mock
from proptrack.core.exceptions import SchedulingConflictError
from proptrack.db.models import Client, Viewing, utcnow
from proptrack.models.viewing import (
    RescheduleRequest, TimeOfDay, ViewingCreate, ViewingStatus, ViewingStatusUpdate, ViewingUpdate,
)
from proptrack.modules.viewings.conflicts import ViewingConflictDetector
from proptrack.modules.viewings.service import ViewingService


class TestViewingServiceTransactions:
    """The slot check runs inside the write and failures leave nothing behind"""

    @pytest.fixture
    def detector(self):
        """Detector double that records how the service consults it"""
        detector = Mock(spec=ViewingConflictDetector)
        detector.ensure_slot_free = AsyncMock()
        return detector

    @pytest.mark.asyncio
    async def test_conflict_rolls_back_create(
        self, test_db_session, detector, make_property, make_client, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        detector.lock_property.return_value = prop
        detector.ensure_slot_free.side_effect = SchedulingConflictError("Scheduling conflict: taken", conflicts=1)
        instant = tomorrow_at(10, days=2)

        service = ViewingService(test_db_session, detector=detector)
        with pytest.raises(SchedulingConflictError):
            await service.create_viewing(ViewingCreate(
                property_id=prop.id,
                client_id=lead.id,
                scheduled_date=instant.date(),
                scheduled_time=TimeOfDay(hour=10, minute=0),
            ))

        assert test_db_session.query(Viewing).count() == 0
        assert test_db_session.get(Client, lead.id).status == "new"

    @pytest.mark.asyncio
    async def test_lock_taken_before_slot_check(
        self, test_db_session, detector, make_property, make_client, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        calls = []
        detector.lock_property.side_effect = lambda property_id: calls.append("lock") or prop
        detector.ensure_slot_free.side_effect = lambda *args: calls.append("check")
        instant = tomorrow_at(11, days=2)

        service = ViewingService(test_db_session, detector=detector)
        await service.create_viewing(ViewingCreate(
            property_id=prop.id,
            client_id=lead.id,
            scheduled_date=instant.date(),
            scheduled_time=TimeOfDay(hour=11, minute=0),
        ))

        assert calls == ["lock", "check"]

    @pytest.mark.asyncio
    async def test_reschedule_excludes_itself(
        self, test_db_session, detector, make_property, make_client, make_viewing, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        viewing = make_viewing(prop, lead, tomorrow_at(10, days=2))
        detector.lock_property.return_value = prop
        target = tomorrow_at(15, days=3)

        service = ViewingService(test_db_session, detector=detector)
        await service.reschedule(str(viewing.id), RescheduleRequest(
            scheduled_date=target.date(), scheduled_time=TimeOfDay(hour=15, minute=0)
        ))

        detector.ensure_slot_free.assert_awaited_once_with(prop.id, target, 60, viewing.id)

    @pytest.mark.asyncio
    async def test_update_without_schedule_change_skips_check(
        self, test_db_session, detector, make_property, make_client, make_viewing, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        viewing = make_viewing(prop, lead, tomorrow_at(10, days=2))

        service = ViewingService(test_db_session, detector=detector)
        updated = await service.update_viewing(str(viewing.id), ViewingUpdate(notes="Gate code 4512"))

        assert updated.notes == "Gate code 4512"
        detector.lock_property.assert_not_called()
        detector.ensure_slot_free.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_time_only_keeps_date(
        self, test_db_session, detector, make_property, make_client, make_viewing, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        original = tomorrow_at(10, days=2)
        viewing = make_viewing(prop, lead, original)
        detector.lock_property.return_value = prop

        service = ViewingService(test_db_session, detector=detector)
        updated = await service.update_viewing(
            str(viewing.id), ViewingUpdate(scheduled_time=TimeOfDay(hour=16, minute=45))
        )

        assert updated.scheduled_at == original.replace(hour=16, minute=45)
        detector.ensure_slot_free.assert_awaited_once_with(prop.id, updated.scheduled_at, 60, viewing.id)

    @pytest.mark.asyncio
    async def test_failed_update_leaves_viewing_untouched(
        self, test_db_session, make_property, make_client, make_viewing, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        make_viewing(prop, lead, tomorrow_at(12, days=2))
        viewing = make_viewing(prop, lead, tomorrow_at(9, days=2))

        service = ViewingService(test_db_session, detector=ViewingConflictDetector(test_db_session, policy="overlap"))
        with pytest.raises(SchedulingConflictError):
            await service.update_viewing(str(viewing.id), ViewingUpdate(duration=240, notes="long tour"))

        test_db_session.expire_all()
        stored = test_db_session.get(Viewing, viewing.id)
        assert stored.duration == 60
        assert stored.notes is None

    @pytest.mark.asyncio
    async def test_restarting_past_viewing_checks_slot_only(
        self, test_db_session, detector, make_property, make_client, make_viewing
    ):
        prop = make_property()
        lead = make_client(prop)
        started = utcnow().replace(second=0, microsecond=0) - timedelta(minutes=10)
        viewing = make_viewing(prop, lead, started, status="cancelled")
        detector.lock_property.return_value = prop

        service = ViewingService(test_db_session, detector=detector)
        updated = await service.update_status(str(viewing.id), ViewingStatusUpdate(status=ViewingStatus.IN_PROGRESS))

        assert updated.status == ViewingStatus.IN_PROGRESS
        detector.ensure_slot_free.assert_awaited_once_with(prop.id, started, 60, viewing.id)

    @pytest.mark.asyncio
    async def test_status_change_between_blocking_states_skips_check(
        self, test_db_session, detector, make_property, make_client, make_viewing, tomorrow_at
    ):
        prop = make_property()
        lead = make_client(prop)
        viewing = make_viewing(prop, lead, tomorrow_at(10, days=2))

        service = ViewingService(test_db_session, detector=detector)
        await service.update_status(str(viewing.id), ViewingStatusUpdate(status=ViewingStatus.CONFIRMED))

        detector.lock_property.assert_not_called()
        detector.ensure_slot_free.assert_not_awaited()
