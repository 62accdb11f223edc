"""
Modelo AuditLog — Registro de auditoría INMUTABLE.
INSERT-only: cada reemplazo de horario y cada cita modificada por el
motor de horarios deja una entrada.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), index=True, comment="Usuario que originó el cambio, si se conoce"
    )

    # ── Datos del evento ─────────────────────────────
    entity: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True,
        comment="Nombre de la entidad: working_hours, appointment"
    )
    entity_id: Mapped[str] = mapped_column(
        String(100), nullable=False,
        comment="ID del registro afectado (o entity_type:entity_id para horarios)"
    )
    action: Mapped[str] = mapped_column(
        String(30), nullable=False, index=True,
        comment="replace, deactivate, reschedule, mark_for_rescheduling, cancel"
    )

    # ── Datos del cambio ─────────────────────────────
    old_data: Mapped[dict | None] = mapped_column(
        JSONType, comment="Snapshot del registro antes del cambio"
    )
    new_data: Mapped[dict | None] = mapped_column(
        JSONType, comment="Snapshot del registro después del cambio"
    )

    # ── Timestamp inmutable ──────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} on {self.entity} {self.entity_id}>"
