"""
Detección de conflictos entre las citas futuras de un médico y un
horario propuesto.
"""

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.config import get_settings
from app.core import messages
from app.core.messages import BilingualMessage, DAY_NAMES_ES
from app.core.time_utils import day_of_week, intervals_overlap, parse_time
from app.models.appointment import ACTIVE_STATUSES, Appointment
from app.models.working_hours import DayOfWeek
from app.schemas.working_hours import ConflictRecord, ConflictResult, DaySchedule

logger = logging.getLogger(__name__)
settings = get_settings()


def effective_duration(duration_minutes: int | None) -> int:
    return duration_minutes or settings.DEFAULT_APPOINTMENT_DURATION_MINUTES


# ── Reglas ───────────────────────────────────────────

def is_appointment_within_hours(
    appointment_time: str,
    duration_minutes: int | None,
    day_schedule: DaySchedule | None,
) -> bool:
    """
    La cita cabe en el día si:
    - el día existe y es laborable;
    - el día no tiene horas (atiende todo el día), o bien empieza en/después
      de la apertura, termina en/antes del cierre y no se cruza con el descanso.
    """
    if day_schedule is None or not day_schedule.is_working_day:
        return False
    if not day_schedule.has_hours:
        return True

    start = parse_time(appointment_time)
    end = start + effective_duration(duration_minutes)
    if start < parse_time(day_schedule.opening_time):
        return False
    if end > parse_time(day_schedule.closing_time):
        return False
    if day_schedule.break_start_time and day_schedule.break_end_time:
        if intervals_overlap(
            start,
            end,
            parse_time(day_schedule.break_start_time),
            parse_time(day_schedule.break_end_time),
        ):
            return False
    return True


def get_conflict_reason(
    appointment_time: str,
    duration_minutes: int | None,
    day: DayOfWeek,
    day_schedule: DaySchedule | None,
) -> BilingualMessage:
    """Primer motivo que aplica: día no laborable → antes de apertura → después de cierre → descanso."""
    if day_schedule is None or not day_schedule.is_working_day:
        return messages.CONFLICT_DAY_NOT_WORKING.format(
            day=day.value.capitalize(), day_es=DAY_NAMES_ES[day.value]
        )
    if not day_schedule.has_hours:
        return messages.CONFLICT_OUTSIDE_HOURS

    start = parse_time(appointment_time)
    end = start + effective_duration(duration_minutes)
    if start < parse_time(day_schedule.opening_time):
        return messages.CONFLICT_BEFORE_OPENING.format(
            appointment_time=appointment_time, opening=day_schedule.opening_time
        )
    if end > parse_time(day_schedule.closing_time):
        return messages.CONFLICT_AFTER_CLOSING.format(closing=day_schedule.closing_time)
    if day_schedule.break_start_time and day_schedule.break_end_time:
        if intervals_overlap(
            start,
            end,
            parse_time(day_schedule.break_start_time),
            parse_time(day_schedule.break_end_time),
        ):
            return messages.CONFLICT_DURING_BREAK.format(
                break_start=day_schedule.break_start_time,
                break_end=day_schedule.break_end_time,
            )
    return messages.CONFLICT_OUTSIDE_HOURS


# ── Consultas ────────────────────────────────────────

async def _get_future_appointments(
    db: AsyncSession, doctor_id: UUID, from_date: date
) -> list[Appointment]:
    """Citas programadas o confirmadas del médico desde `from_date`, sin eliminadas."""
    result = await db.execute(
        select(Appointment)
        .options(joinedload(Appointment.patient))
        .where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date >= from_date,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.deleted_at.is_(None),
        )
        .order_by(Appointment.appointment_date, Appointment.appointment_time)
    )
    return list(result.scalars().all())


async def get_appointments_by_day(
    db: AsyncSession,
    doctor_id: UUID,
    day: DayOfWeek,
    from_date: date | None = None,
) -> list[Appointment]:
    """Citas futuras activas del médico que caen en un día de la semana."""
    appointments = await _get_future_appointments(db, doctor_id, from_date or date.today())
    return [a for a in appointments if day_of_week(a.appointment_date) == day]


async def get_conflicting_appointments(
    db: AsyncSession,
    doctor_id: UUID,
    new_schedule: list[DaySchedule],
    from_date: date | None = None,
) -> list[tuple[Appointment, BilingualMessage]]:
    """Citas vivas (ORM) que no caben en el nuevo horario, con su motivo."""
    schedule_by_day = {d.day_of_week: d for d in new_schedule}
    appointments = await _get_future_appointments(db, doctor_id, from_date or date.today())

    conflicts = []
    for appointment in appointments:
        day = day_of_week(appointment.appointment_date)
        day_schedule = schedule_by_day.get(day)
        if is_appointment_within_hours(
            appointment.appointment_time, appointment.duration_minutes, day_schedule
        ):
            continue
        reason = get_conflict_reason(
            appointment.appointment_time, appointment.duration_minutes, day, day_schedule
        )
        conflicts.append((appointment, reason))
    return conflicts


async def check_conflicts(
    db: AsyncSession,
    doctor_id: UUID,
    new_schedule: list[DaySchedule],
    from_date: date | None = None,
) -> ConflictResult:
    """Resumen de las citas del médico que quedarían fuera del nuevo horario."""
    conflicts = await get_conflicting_appointments(db, doctor_id, new_schedule, from_date)

    records = [
        ConflictRecord(
            appointment_id=appointment.id,
            patient_id=appointment.patient_id,
            patient_name=appointment.patient.full_name if appointment.patient else "",
            appointment_date=appointment.appointment_date,
            appointment_time=appointment.appointment_time,
            duration_minutes=effective_duration(appointment.duration_minutes),
            day_of_week=day_of_week(appointment.appointment_date),
            conflict_reason=reason,
        )
        for appointment, reason in conflicts
    ]
    if records:
        logger.info(f"Médico {doctor_id}: {len(records)} citas en conflicto con el nuevo horario")

    return ConflictResult(
        has_conflicts=bool(records),
        conflicts=records,
        affected_appointments=len(records),
        requires_rescheduling=bool(records),
    )
