"""
Tests de actualización de horario con resolución de conflictos:
estrategias reschedule / notify / cancel, búsqueda de hueco, avisos
y atomicidad.
"""

import pytest
from sqlalchemy import func, select

from app.core import messages
from app.core.exceptions import ValidationException
from app.models.appointment import Appointment, AppointmentStatus
from app.models.audit_log import AuditLog
from app.models.notification import Notification, NotificationType
from app.models.working_hours import DayOfWeek, EntityType
from app.schemas.working_hours import (
    ConflictStrategy,
    DaySchedule,
    ReschedulingOutcome,
    UpdateWithReschedulingRequest,
)
from app.services import notification_service, working_hours_service
from app.services.working_hours_rescheduling_service import (
    find_suitable_time,
    update_with_rescheduling,
)
from tests.utils import add_appointment, next_weekday, store_hours, week


async def _get_appointment(db, appointment_id) -> Appointment:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


def _request(schedule, strategy, **kwargs) -> UpdateWithReschedulingRequest:
    return UpdateWithReschedulingRequest(schedule=schedule, handle_conflicts=strategy, **kwargs)


# ── Búsqueda de hueco ────────────────────────────────

class TestFindSuitableTime:
    DAY = DaySchedule(
        day_of_week=DayOfWeek.MONDAY,
        opening_time="10:00",
        closing_time="16:00",
        break_start_time="10:00",
        break_end_time="11:00",
    )

    def test_keeps_original_time_when_it_fits(self):
        assert find_suitable_time("14:00", 30, self.DAY) == "14:00"

    def test_first_slot_after_break(self):
        assert find_suitable_time("09:00", 30, self.DAY) == "11:00"

    def test_first_slot_from_opening(self):
        day = DaySchedule(day_of_week=DayOfWeek.MONDAY, opening_time="10:00", closing_time="16:00")
        assert find_suitable_time("08:00", 45, day) == "10:00"

    def test_slots_follow_step(self):
        day = DaySchedule(
            day_of_week=DayOfWeek.MONDAY,
            opening_time="10:00",
            closing_time="12:00",
            break_start_time="10:10",
            break_end_time="10:50",
        )
        # 10:00, 10:15, 10:30, 10:45 cruzan el descanso
        assert find_suitable_time("07:00", 30, day) == "11:00"
        assert find_suitable_time("07:00", 30, day, step_minutes=50) == "10:50"

    def test_no_slot_when_duration_exceeds_day(self):
        day = DaySchedule(day_of_week=DayOfWeek.MONDAY, opening_time="10:00", closing_time="10:20")
        assert find_suitable_time("09:00", 30, day) is None

    def test_closed_day(self):
        closed = DaySchedule(day_of_week=DayOfWeek.MONDAY, is_working_day=False)
        assert find_suitable_time("10:00", 30, closed) is None
        assert find_suitable_time("10:00", 30, None) is None


# ── Orquestación ─────────────────────────────────────

class TestUpdateWithRescheduling:

    async def test_reschedule_moves_to_first_slot(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        early = await add_appointment(db_session, test_doctor, test_patient, monday, "09:00")
        early_id = early.id

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week("10:00", "16:00"), ConflictStrategy.RESCHEDULE),
        )

        assert result.success is True
        assert result.appointments_rescheduled == 1
        assert result.appointments_marked_for_rescheduling == 0
        assert result.notifications_sent == 1
        detail = result.details[0]
        assert detail.status == ReschedulingOutcome.RESCHEDULED
        assert detail.original_time == "09:00"
        assert detail.new_time == "10:00"
        assert detail.reason == messages.AUTO_RESCHEDULE_REASON

        appointment = await _get_appointment(db_session, early_id)
        assert appointment.appointment_time == "10:00"
        assert appointment.appointment_date == monday
        assert appointment.status == AppointmentStatus.SCHEDULED

        notification = (await db_session.execute(select(Notification))).scalar_one()
        assert notification.notification_type == NotificationType.APPOINTMENT_RESCHEDULED
        assert notification.recipient_id == test_patient.id
        # aviso con la hora original
        assert "09:00" in notification.message["en"]

    async def test_reschedule_marks_when_day_closed(self, db_session, test_doctor, test_patient):
        saturday = next_weekday(DayOfWeek.SATURDAY)
        appointment = await add_appointment(db_session, test_doctor, test_patient, saturday, "10:00")
        appointment_id = appointment.id

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week(), ConflictStrategy.RESCHEDULE, rescheduling_reason="Vacaciones"),
        )

        assert result.appointments_rescheduled == 0
        assert result.appointments_marked_for_rescheduling == 1
        assert result.details[0].reason == messages.DAY_NOT_WORKING_REASON

        stored = await _get_appointment(db_session, appointment_id)
        assert stored.status == AppointmentStatus.NEEDS_RESCHEDULING
        assert stored.rescheduling_reason == messages.DAY_NOT_WORKING_REASON
        assert stored.marked_for_rescheduling_at is not None
        assert stored.appointment_time == "10:00"

        notification = (await db_session.execute(select(Notification))).scalar_one()
        assert notification.notification_type == NotificationType.APPOINTMENT_NEEDS_RESCHEDULING

    async def test_reschedule_marks_when_no_slot(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(
            db_session, test_doctor, test_patient, monday, "09:00", duration_minutes=90
        )

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week("10:00", "11:00"), ConflictStrategy.RESCHEDULE),
        )

        assert result.appointments_marked_for_rescheduling == 1
        assert result.details[0].reason == messages.NO_SLOT_REASON
        assert result.details[0].new_time is None

    async def test_reschedule_uses_custom_reason(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(
                week("09:00", "17:00"),
                ConflictStrategy.RESCHEDULE,
                rescheduling_reason="Capacitación",
            ),
        )
        assert result.details[0].reason == "Capacitación"

    async def test_notify_marks_every_conflict(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        first = await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")
        second = await add_appointment(db_session, test_doctor, test_patient, monday, "18:00")
        ids = [first.id, second.id]

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week("09:00", "17:00"), ConflictStrategy.NOTIFY),
        )

        assert result.appointments_marked_for_rescheduling == 2
        assert result.notifications_sent == 2
        for appointment_id in ids:
            stored = await _get_appointment(db_session, appointment_id)
            assert stored.status == AppointmentStatus.NEEDS_RESCHEDULING
            assert stored.rescheduling_reason == messages.DEFAULT_NOTIFY_REASON

    async def test_cancel_strategy(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        appointment = await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")
        appointment_id = appointment.id

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week("09:00", "17:00"), ConflictStrategy.CANCEL),
        )

        assert result.appointments_cancelled == 1
        stored = await _get_appointment(db_session, appointment_id)
        assert stored.status == AppointmentStatus.CANCELLED
        assert stored.cancellation_reason == messages.DEFAULT_CANCEL_REASON
        notification = (await db_session.execute(select(Notification))).scalar_one()
        assert notification.notification_type == NotificationType.APPOINTMENT_CANCELLED

    async def test_notify_patients_false_skips_notifications(
        self, db_session, test_doctor, test_patient
    ):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")

        result = await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week("09:00", "17:00"), ConflictStrategy.CANCEL, notify_patients=False),
        )

        assert result.appointments_cancelled == 1
        assert result.notifications_sent == 0
        assert await _count(db_session, Notification) == 0

    async def test_writes_audit_trail(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")

        await update_with_rescheduling(
            db_session,
            EntityType.USER,
            test_doctor.id,
            _request(week("09:00", "17:00"), ConflictStrategy.CANCEL),
        )

        actions = (await db_session.execute(select(AuditLog.action))).scalars().all()
        assert sorted(actions) == ["cancel", "replace"]

    async def test_second_run_finds_nothing_to_do(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")
        request = _request(week("09:00", "17:00"), ConflictStrategy.NOTIFY)

        first = await update_with_rescheduling(db_session, EntityType.USER, test_doctor.id, request)
        second = await update_with_rescheduling(db_session, EntityType.USER, test_doctor.id, request)

        assert first.appointments_marked_for_rescheduling == 1
        assert second.details == []
        assert second.notifications_sent == 0
        assert len(second.working_hours) == 7

    async def test_non_user_entity_only_replaces_hours(
        self, db_session, test_clinic, test_doctor, test_patient
    ):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")

        result = await update_with_rescheduling(
            db_session,
            EntityType.CLINIC,
            test_clinic.id,
            _request(week("09:00", "17:00"), ConflictStrategy.CANCEL),
        )

        assert result.details == []
        assert len(result.working_hours) == 7
        assert await _count(db_session, Notification) == 0

    async def test_invalid_structure_is_rejected_before_writing(
        self, db_session, test_doctor, test_patient
    ):
        bad = [DaySchedule(day_of_week=DayOfWeek.MONDAY, opening_time="17:00", closing_time="09:00")]

        with pytest.raises(ValidationException):
            await update_with_rescheduling(
                db_session,
                EntityType.USER,
                test_doctor.id,
                _request(bad, ConflictStrategy.CANCEL),
            )

        rows = await working_hours_service.get_working_hours(
            db_session, EntityType.USER, test_doctor.id
        )
        assert rows == []

    async def test_failure_rolls_back_everything(
        self, db_session, test_doctor, test_patient, monkeypatch
    ):
        doctor_id = test_doctor.id
        await store_hours(db_session, EntityType.USER, doctor_id, week("08:00", "18:00"))
        monday = next_weekday(DayOfWeek.MONDAY)
        appointment = await add_appointment(db_session, test_doctor, test_patient, monday, "08:00")
        appointment_id = appointment.id
        audit_before = await _count(db_session, AuditLog)

        async def broken_notifications(db, details):
            raise RuntimeError("notification store unavailable")

        monkeypatch.setattr(
            notification_service, "create_appointment_notifications", broken_notifications
        )

        with pytest.raises(RuntimeError):
            await update_with_rescheduling(
                db_session,
                EntityType.USER,
                doctor_id,
                _request(week("09:00", "17:00"), ConflictStrategy.CANCEL),
            )

        stored = await _get_appointment(db_session, appointment_id)
        assert stored.status == AppointmentStatus.SCHEDULED
        assert stored.cancellation_reason is None
        rows = await working_hours_service.get_working_hours(db_session, EntityType.USER, doctor_id)
        assert [r.opening_time for r in rows if r.is_working_day] == ["08:00"] * 5
        assert await _count(db_session, Notification) == 0
        assert await _count(db_session, AuditLog) == audit_before
