"""
Tests de detección de conflictos entre citas futuras y un horario nuevo.
"""

from datetime import date, datetime, timedelta, timezone

from app.core import messages
from app.models.appointment import AppointmentStatus
from app.models.working_hours import DayOfWeek
from app.schemas.working_hours import DaySchedule
from app.services.appointment_conflict_service import (
    check_conflicts,
    get_appointments_by_day,
    get_conflict_reason,
    is_appointment_within_hours,
)
from tests.utils import add_appointment, next_weekday, week

MONDAY = DaySchedule(
    day_of_week=DayOfWeek.MONDAY,
    opening_time="09:00",
    closing_time="17:00",
    break_start_time="12:00",
    break_end_time="13:00",
)


# ── Reglas ───────────────────────────────────────────

class TestWithinHours:

    def test_fits(self):
        assert is_appointment_within_hours("09:00", 30, MONDAY)
        assert is_appointment_within_hours("16:30", 30, MONDAY)
        assert is_appointment_within_hours("11:30", 30, MONDAY)
        assert is_appointment_within_hours("13:00", 60, MONDAY)

    def test_before_opening(self):
        assert not is_appointment_within_hours("08:30", 30, MONDAY)

    def test_ends_after_closing(self):
        assert not is_appointment_within_hours("16:45", 30, MONDAY)

    def test_crosses_break(self):
        assert not is_appointment_within_hours("11:45", 30, MONDAY)
        assert not is_appointment_within_hours("12:15", 15, MONDAY)
        assert not is_appointment_within_hours("11:00", 180, MONDAY)

    def test_missing_duration_defaults_to_30_minutes(self):
        assert is_appointment_within_hours("16:30", None, MONDAY)
        assert not is_appointment_within_hours("16:31", None, MONDAY)

    def test_day_not_working_or_missing(self):
        closed = DaySchedule(day_of_week=DayOfWeek.MONDAY, is_working_day=False)
        assert not is_appointment_within_hours("10:00", 30, closed)
        assert not is_appointment_within_hours("10:00", 30, None)

    def test_working_day_without_hours_accepts_any_time(self):
        all_day = DaySchedule(day_of_week=DayOfWeek.MONDAY)
        assert is_appointment_within_hours("03:00", 30, all_day)


class TestConflictReason:

    def test_priority_day_not_working_first(self):
        reason = get_conflict_reason("10:00", 30, DayOfWeek.SUNDAY, None)
        assert reason.en == "Sunday is no longer a working day"
        assert reason.es == "El domingo ya no es día laborable"

    def test_before_opening(self):
        reason = get_conflict_reason("08:00", 30, DayOfWeek.MONDAY, MONDAY)
        assert reason.en == "Appointment at 08:00 is before new opening time 09:00"

    def test_after_closing(self):
        reason = get_conflict_reason("16:45", 30, DayOfWeek.MONDAY, MONDAY)
        assert reason.en == "Appointment ends after new closing time 17:00"

    def test_during_break(self):
        reason = get_conflict_reason("11:45", 30, DayOfWeek.MONDAY, MONDAY)
        assert reason.en == "Appointment conflicts with break time (12:00 - 13:00)"

    def test_fallback(self):
        reason = get_conflict_reason("10:00", 30, DayOfWeek.MONDAY, MONDAY)
        assert reason == messages.CONFLICT_OUTSIDE_HOURS


# ── Consultas ────────────────────────────────────────

class TestCheckConflicts:

    async def test_only_out_of_hours_appointments_conflict(
        self, db_session, test_doctor, test_patient
    ):
        monday = next_weekday(DayOfWeek.MONDAY)
        fits = await add_appointment(db_session, test_doctor, test_patient, monday, "10:00")
        late = await add_appointment(db_session, test_doctor, test_patient, monday, "17:00")

        result = await check_conflicts(db_session, test_doctor.id, week("08:00", "16:00"))

        assert result.has_conflicts is True
        assert result.requires_rescheduling is True
        assert result.affected_appointments == 1
        record = result.conflicts[0]
        assert record.appointment_id == late.id
        assert record.appointment_id != fits.id
        assert record.patient_name == "Luis Rojas"
        assert record.day_of_week == DayOfWeek.MONDAY
        assert record.duration_minutes == 30
        assert record.conflict_reason.en == "Appointment ends after new closing time 16:00"

    async def test_closed_day_conflicts(self, db_session, test_doctor, test_patient):
        saturday = next_weekday(DayOfWeek.SATURDAY)
        await add_appointment(db_session, test_doctor, test_patient, saturday, "10:00")

        result = await check_conflicts(db_session, test_doctor.id, week())

        assert result.affected_appointments == 1
        assert result.conflicts[0].conflict_reason.en == "Saturday is no longer a working day"

    async def test_day_missing_from_schedule_conflicts(
        self, db_session, test_doctor, test_patient
    ):
        tuesday = next_weekday(DayOfWeek.TUESDAY)
        await add_appointment(db_session, test_doctor, test_patient, tuesday, "10:00")

        monday_only = [
            DaySchedule(day_of_week=DayOfWeek.MONDAY, opening_time="09:00", closing_time="17:00")
        ]
        result = await check_conflicts(db_session, test_doctor.id, monday_only)

        assert result.affected_appointments == 1

    async def test_ignores_past_inactive_and_deleted(
        self, db_session, test_doctor, test_patient
    ):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(
            db_session, test_doctor, test_patient, date.today() - timedelta(days=7), "06:00"
        )
        await add_appointment(
            db_session, test_doctor, test_patient, monday, "06:00",
            status=AppointmentStatus.CANCELLED,
        )
        await add_appointment(
            db_session, test_doctor, test_patient, monday, "06:00",
            status=AppointmentStatus.COMPLETED,
        )
        deleted = await add_appointment(db_session, test_doctor, test_patient, monday, "06:00")
        deleted.deleted_at = datetime.now(timezone.utc)
        await db_session.commit()

        result = await check_conflicts(db_session, test_doctor.id, week())

        assert result.has_conflicts is False
        assert result.conflicts == []
        assert result.affected_appointments == 0

    async def test_confirmed_appointments_are_checked(
        self, db_session, test_doctor, test_patient
    ):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(
            db_session, test_doctor, test_patient, monday, "07:00",
            status=AppointmentStatus.CONFIRMED,
        )
        result = await check_conflicts(db_session, test_doctor.id, week())
        assert result.affected_appointments == 1

    async def test_appointments_by_day(self, db_session, test_doctor, test_patient):
        monday = next_weekday(DayOfWeek.MONDAY)
        await add_appointment(db_session, test_doctor, test_patient, monday, "10:00")
        await add_appointment(
            db_session, test_doctor, test_patient, monday + timedelta(days=1), "10:00"
        )

        mondays = await get_appointments_by_day(db_session, test_doctor.id, DayOfWeek.MONDAY)

        assert len(mondays) == 1
        assert mondays[0].appointment_date == monday
