"""
Utilidades para armar horarios y citas en los tests.
"""

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus
from app.models.working_hours import DayOfWeek, EntityType
from app.schemas.working_hours import DaySchedule
from app.services import working_hours_service

WEEKDAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
)


def week(
    opening: str = "09:00",
    closing: str = "17:00",
    break_start: str | None = None,
    break_end: str | None = None,
    closed: tuple[DayOfWeek, ...] = (DayOfWeek.SATURDAY, DayOfWeek.SUNDAY),
) -> list[DaySchedule]:
    """Semana completa de 7 días con el mismo horario en los días abiertos."""
    schedule = []
    for day in DayOfWeek:
        if day in closed:
            schedule.append(DaySchedule(day_of_week=day, is_working_day=False))
        else:
            schedule.append(
                DaySchedule(
                    day_of_week=day,
                    opening_time=opening,
                    closing_time=closing,
                    break_start_time=break_start,
                    break_end_time=break_end,
                )
            )
    return schedule


def next_weekday(day: DayOfWeek, weeks_ahead: int = 1) -> date:
    """Fecha futura (desde la próxima semana) que cae en `day`."""
    target = {
        DayOfWeek.MONDAY: 0,
        DayOfWeek.TUESDAY: 1,
        DayOfWeek.WEDNESDAY: 2,
        DayOfWeek.THURSDAY: 3,
        DayOfWeek.FRIDAY: 4,
        DayOfWeek.SATURDAY: 5,
        DayOfWeek.SUNDAY: 6,
    }[day]
    today = date.today()
    monday = today + timedelta(days=7 - today.weekday())
    return monday + timedelta(days=target, weeks=weeks_ahead - 1)


async def store_hours(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    schedule: list[DaySchedule],
) -> None:
    await working_hours_service.replace_working_hours(db, entity_type, entity_id, schedule)
    await db.commit()


async def add_appointment(
    db: AsyncSession,
    doctor,
    patient,
    appointment_date: date,
    appointment_time: str,
    duration_minutes: int | None = 30,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
) -> Appointment:
    appointment = Appointment(
        clinic_id=patient.clinic_id,
        patient_id=patient.id,
        doctor_id=doctor.id,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        duration_minutes=duration_minutes,
        status=status,
    )
    db.add(appointment)
    await db.commit()
    return appointment
