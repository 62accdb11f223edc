"""
Modelo Appointment — Citas médicas.

El motor de horarios solo modifica `status`, `appointment_time`,
`rescheduling_reason`, `cancellation_reason`, `marked_for_rescheduling_at`
y `updated_at`. El resto de campos pertenece al módulo de citas.

Estados:
    scheduled → confirmed → in_progress → completed
    scheduled / confirmed → cancelled | no_show | needs_rescheduling
    needs_rescheduling → scheduled | cancelled
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class AppointmentStatus(str, enum.Enum):
    """Estados de una cita médica."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    NEEDS_RESCHEDULING = "needs_rescheduling"


# Solo estas citas pueden entrar en conflicto con un nuevo horario
ACTIVE_STATUSES: tuple[AppointmentStatus, ...] = (
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.CONFIRMED,
)


class Appointment(Base):
    __tablename__ = "appointments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    clinic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("clinics.id"), nullable=False
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("patients.id"), nullable=False
    )
    doctor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )

    # ── Datos de la cita ─────────────────────────────
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False)
    appointment_time: Mapped[str] = mapped_column(
        String(5), nullable=False, comment="Hora de inicio HH:mm"
    )
    duration_minutes: Mapped[int | None] = mapped_column(
        Integer, comment="Duración; si es NULL se asumen 30 minutos"
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(AppointmentStatus),
        nullable=False,
        default=AppointmentStatus.SCHEDULED,
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # ── Metadata de reprogramación / cancelación ─────
    rescheduling_reason: Mapped[str | None] = mapped_column(String(500))
    marked_for_rescheduling_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    cancellation_reason: Mapped[str | None] = mapped_column(String(500))

    # ── Soft delete ──────────────────────────────────
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # ── Timestamps ───────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # ── Relaciones ───────────────────────────────────
    patient: Mapped["Patient"] = relationship("Patient")  # noqa: F821
    doctor: Mapped["User"] = relationship("User", foreign_keys=[doctor_id])  # noqa: F821

    # ── Índices para consultas frecuentes ────────────
    __table_args__ = (
        Index("idx_appointment_doctor_date", "doctor_id", "appointment_date"),
        Index("idx_appointment_patient", "patient_id", "appointment_date"),
        Index("idx_appointment_status", "doctor_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id} [{self.status.value}] "
            f"{self.appointment_date} {self.appointment_time}>"
        )
