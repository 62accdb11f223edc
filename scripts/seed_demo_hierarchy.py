"""
Seed de una jerarquía de demostración con horarios y citas.

Uso:
    python scripts/seed_demo_hierarchy.py

Crea organización → complejo → clínica → médico, registra los horarios de
los cuatro niveles con validación contra el padre (alta masiva) y agenda
algunas citas para la próxima semana. Sirve para probar a mano
/check-conflicts y /with-rescheduling.
"""

import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.database import async_session_factory, engine  # noqa: E402
from app.models.appointment import Appointment  # noqa: E402
from app.models.clinic import Clinic  # noqa: E402
from app.models.complex import Complex  # noqa: E402
from app.models.organization import Organization  # noqa: E402
from app.models.patient import Patient  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402
from app.models.working_hours import DayOfWeek, EntityType  # noqa: E402
from app.schemas.working_hours import BulkWorkingHoursEntry, DaySchedule  # noqa: E402
from app.services.working_hours_validation_service import (  # noqa: E402
    create_bulk_working_hours_with_validation,
)

WEEKDAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
)


def _week(opening: str, closing: str, saturday: tuple[str, str] | None = None) -> list[DaySchedule]:
    schedule = [DaySchedule(day_of_week=DayOfWeek.SUNDAY, is_working_day=False)]
    for day in WEEKDAYS:
        schedule.append(
            DaySchedule(day_of_week=day, opening_time=opening, closing_time=closing)
        )
    if saturday:
        schedule.append(
            DaySchedule(
                day_of_week=DayOfWeek.SATURDAY,
                opening_time=saturday[0],
                closing_time=saturday[1],
            )
        )
    else:
        schedule.append(DaySchedule(day_of_week=DayOfWeek.SATURDAY, is_working_day=False))
    return schedule


def _next_monday() -> date:
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) or 7)


async def seed_demo() -> None:
    async with async_session_factory() as db:
        organization = Organization(name="Grupo Salud Demo", contact_email="demo@salud.pe")
        db.add(organization)
        await db.flush()

        complex_ = Complex(
            organization_id=organization.id, name="Complejo Miraflores", address="Av. Larco 123"
        )
        db.add(complex_)
        await db.flush()

        clinic = Clinic(
            organization_id=organization.id,
            complex_id=complex_.id,
            name="Clínica Dental Miraflores",
            specialty_type="dental",
        )
        db.add(clinic)
        await db.flush()

        doctor = User(
            clinic_id=clinic.id,
            complex_id=complex_.id,
            email="dra.quispe@salud.pe",
            role=UserRole.DOCTOR,
            first_name="Ana",
            last_name="Quispe",
            specialty="Odontología",
        )
        patient = Patient(clinic_id=clinic.id, first_name="Luis", last_name="Rojas", phone="999888777")
        db.add_all([doctor, patient])
        await db.flush()

        doctor_schedule = _week("09:00", "17:00")
        for day in doctor_schedule:
            if day.is_working_day:
                day.break_start_time = "13:00"
                day.break_end_time = "14:00"

        entries = [
            BulkWorkingHoursEntry(
                entity_type=EntityType.ORGANIZATION,
                entity_id=organization.id,
                schedule=_week("07:00", "21:00", saturday=("08:00", "14:00")),
            ),
            BulkWorkingHoursEntry(
                entity_type=EntityType.COMPLEX,
                entity_id=complex_.id,
                parent_entity_type=EntityType.ORGANIZATION,
                parent_entity_id=organization.id,
                schedule=_week("08:00", "20:00", saturday=("08:00", "13:00")),
            ),
            BulkWorkingHoursEntry(
                entity_type=EntityType.CLINIC,
                entity_id=clinic.id,
                parent_entity_type=EntityType.COMPLEX,
                parent_entity_id=complex_.id,
                schedule=_week("08:00", "18:00"),
            ),
            BulkWorkingHoursEntry(
                entity_type=EntityType.USER,
                entity_id=doctor.id,
                parent_entity_type=EntityType.CLINIC,
                parent_entity_id=clinic.id,
                schedule=doctor_schedule,
            ),
        ]
        # La unidad de trabajo del alta masiva confirma también la jerarquía
        await create_bulk_working_hours_with_validation(db, entries)

        monday = _next_monday()
        for offset, time in ((0, "09:00"), (0, "15:30"), (2, "10:00"), (4, "16:00")):
            db.add(
                Appointment(
                    clinic_id=clinic.id,
                    patient_id=patient.id,
                    doctor_id=doctor.id,
                    appointment_date=monday + timedelta(days=offset),
                    appointment_time=time,
                    duration_minutes=30,
                )
            )
        await db.commit()

        print("Seed completado:")
        print(f"  organization: {organization.id}")
        print(f"  complex:      {complex_.id}")
        print(f"  clinic:       {clinic.id}")
        print(f"  doctor:       {doctor.id}")
        print(f"  patient:      {patient.id} (4 citas desde {monday.isoformat()})")

    await engine.dispose()


def main():
    asyncio.run(seed_demo())


if __name__ == "__main__":
    main()
