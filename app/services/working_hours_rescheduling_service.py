"""
Actualización de horario con resolución de conflictos.

Reemplaza la semana de la entidad y, si es un médico, resuelve las citas
que quedan fuera del nuevo horario según la estrategia elegida:

- reschedule: mantiene la hora si cabe; si no, busca el primer hueco desde
  la apertura en pasos de RESCHEDULE_SLOT_STEP_MINUTES evitando el descanso.
  Sin hueco o con el día cerrado, la cita queda `needs_rescheduling`.
- notify: todas quedan `needs_rescheduling`, sin tocar la hora.
- cancel: todas quedan `cancelled`.

Todo ocurre en una sola unidad de trabajo: ante cualquier error no queda
ningún cambio (horario, citas ni avisos).
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core import messages
from app.core.cache import QueryCache
from app.core.time_utils import day_of_week, format_time, intervals_overlap, parse_time
from app.core.unit_of_work import UnitOfWork
from app.models.appointment import Appointment, AppointmentStatus
from app.models.working_hours import EntityType
from app.schemas.working_hours import (
    ConflictStrategy,
    DaySchedule,
    RescheduledAppointment,
    ReschedulingOutcome,
    ReschedulingResult,
    UpdateWithReschedulingRequest,
    WorkingHoursResponse,
)
from app.services import (
    appointment_conflict_service,
    audit_service,
    notification_service,
    working_hours_service,
)

logger = logging.getLogger(__name__)
settings = get_settings()


# ── Búsqueda de hueco ────────────────────────────────

def find_suitable_time(
    appointment_time: str,
    duration_minutes: int | None,
    day_schedule: DaySchedule | None,
    step_minutes: int | None = None,
) -> str | None:
    """
    Hora de inicio para la cita en el día dado, o None si no hay hueco.
    Prefiere la hora original; si no cabe, recorre desde la apertura.
    """
    if day_schedule is None or not day_schedule.is_working_day:
        return None
    if appointment_conflict_service.is_appointment_within_hours(
        appointment_time, duration_minutes, day_schedule
    ):
        return appointment_time

    step = step_minutes or settings.RESCHEDULE_SLOT_STEP_MINUTES
    duration = appointment_conflict_service.effective_duration(duration_minutes)
    opening = parse_time(day_schedule.opening_time)
    closing = parse_time(day_schedule.closing_time)
    has_break = bool(day_schedule.break_start_time and day_schedule.break_end_time)

    slot = opening
    while slot + duration <= closing:
        if not has_break or not intervals_overlap(
            slot,
            slot + duration,
            parse_time(day_schedule.break_start_time),
            parse_time(day_schedule.break_end_time),
        ):
            return format_time(slot)
        slot += step
    return None


# ── Mutaciones de citas ──────────────────────────────

def _detail(
    appointment: Appointment,
    original_time: str,
    outcome: ReschedulingOutcome,
    reason: str,
    new_time: str | None = None,
) -> RescheduledAppointment:
    return RescheduledAppointment(
        appointment_id=appointment.id,
        patient_id=appointment.patient_id,
        appointment_date=appointment.appointment_date,
        original_time=original_time,
        new_time=new_time,
        status=outcome,
        reason=reason,
    )


async def _audit_appointment(
    db: AsyncSession, appointment: Appointment, action: str, old_data: dict
) -> None:
    await audit_service.log_action(
        db,
        entity="appointment",
        entity_id=str(appointment.id),
        action=action,
        old_data=old_data,
        new_data={
            "status": appointment.status,
            "appointment_time": appointment.appointment_time,
            "rescheduling_reason": appointment.rescheduling_reason,
            "cancellation_reason": appointment.cancellation_reason,
        },
    )


async def mark_for_rescheduling(
    db: AsyncSession, appointment: Appointment, reason: str, marked_at: datetime
) -> RescheduledAppointment:
    old = {"status": appointment.status, "appointment_time": appointment.appointment_time}
    appointment.status = AppointmentStatus.NEEDS_RESCHEDULING
    appointment.rescheduling_reason = reason
    appointment.marked_for_rescheduling_at = marked_at
    await _audit_appointment(db, appointment, "mark_for_rescheduling", old)
    return _detail(
        appointment, appointment.appointment_time,
        ReschedulingOutcome.MARKED_FOR_RESCHEDULING, reason,
    )


async def cancel_appointment(
    db: AsyncSession, appointment: Appointment, reason: str
) -> RescheduledAppointment:
    old = {"status": appointment.status, "appointment_time": appointment.appointment_time}
    appointment.status = AppointmentStatus.CANCELLED
    appointment.cancellation_reason = reason
    await _audit_appointment(db, appointment, "cancel", old)
    return _detail(appointment, appointment.appointment_time, ReschedulingOutcome.CANCELLED, reason)


async def reschedule_appointment(
    db: AsyncSession,
    appointment: Appointment,
    day_schedule: DaySchedule | None,
    reason: str | None,
    marked_at: datetime,
) -> RescheduledAppointment:
    """Mueve la cita dentro del mismo día; si no se puede, la marca para reprogramar."""
    if day_schedule is None or not day_schedule.is_working_day:
        return await mark_for_rescheduling(
            db, appointment, messages.DAY_NOT_WORKING_REASON, marked_at
        )

    original_time = appointment.appointment_time
    new_time = find_suitable_time(original_time, appointment.duration_minutes, day_schedule)
    if new_time is None:
        return await mark_for_rescheduling(db, appointment, messages.NO_SLOT_REASON, marked_at)

    effective_reason = reason or messages.AUTO_RESCHEDULE_REASON
    old = {"status": appointment.status, "appointment_time": original_time}
    appointment.appointment_time = new_time
    appointment.rescheduling_reason = effective_reason
    await _audit_appointment(db, appointment, "reschedule", old)
    return _detail(
        appointment, original_time, ReschedulingOutcome.RESCHEDULED, effective_reason,
        new_time=new_time,
    )


async def resolve_conflicts(
    db: AsyncSession,
    appointments: list[Appointment],
    new_schedule: list[DaySchedule],
    strategy: ConflictStrategy,
    reason: str | None = None,
) -> list[RescheduledAppointment]:
    """Aplica la estrategia a cada cita en conflicto. No hace commit."""
    schedule_by_day = {d.day_of_week: d for d in new_schedule}
    now = datetime.now(timezone.utc)
    details = []

    for appointment in appointments:
        if strategy == ConflictStrategy.RESCHEDULE:
            day_schedule = schedule_by_day.get(day_of_week(appointment.appointment_date))
            detail = await reschedule_appointment(db, appointment, day_schedule, reason, now)
        elif strategy == ConflictStrategy.NOTIFY:
            detail = await mark_for_rescheduling(
                db, appointment, reason or messages.DEFAULT_NOTIFY_REASON, now
            )
        else:
            detail = await cancel_appointment(
                db, appointment, reason or messages.DEFAULT_CANCEL_REASON
            )
        logger.info(
            f"Cita {appointment.id} ({appointment.appointment_date} {detail.original_time}): "
            f"{detail.status.value}"
        )
        details.append(detail)

    return details


# ── Orquestación ─────────────────────────────────────

async def update_with_rescheduling(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    options: UpdateWithReschedulingRequest,
    cache: QueryCache | None = None,
) -> ReschedulingResult:
    """
    Reemplaza el horario y resuelve las citas afectadas en una sola
    transacción. Para entidades que no son usuarios solo se reemplaza el
    horario. Los errores estructurales se rechazan antes de escribir.
    """
    working_hours_service.ensure_valid_structure(options.schedule)
    result = ReschedulingResult()

    async with UnitOfWork(db):
        rows = await working_hours_service.replace_working_hours(
            db, entity_type, entity_id, options.schedule, cache=cache
        )

        if entity_type == EntityType.USER:
            conflicts = await appointment_conflict_service.get_conflicting_appointments(
                db, entity_id, options.schedule
            )
            if conflicts:
                logger.info(
                    f"Médico {entity_id}: {len(conflicts)} citas en conflicto, "
                    f"estrategia {options.handle_conflicts.value}"
                )
                result.details = await resolve_conflicts(
                    db,
                    [appointment for appointment, _ in conflicts],
                    options.schedule,
                    options.handle_conflicts,
                    options.rescheduling_reason,
                )
                if options.notify_patients:
                    result.notifications_sent = (
                        await notification_service.create_appointment_notifications(
                            db, result.details
                        )
                    )

        result.working_hours = [WorkingHoursResponse.model_validate(r) for r in rows]

    for detail in result.details:
        if detail.status == ReschedulingOutcome.RESCHEDULED:
            result.appointments_rescheduled += 1
        elif detail.status == ReschedulingOutcome.MARKED_FOR_RESCHEDULING:
            result.appointments_marked_for_rescheduling += 1
        else:
            result.appointments_cancelled += 1

    return result
