"""
Modelo WorkingHours — Horario de atención por día de la semana.

Una entidad (organización, complejo, clínica o usuario) tiene a lo sumo un
registro por día. La semana completa se reemplaza en bloque
(delete-all + insert-all); nunca se parchea día por día.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Index,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DayOfWeek(str, enum.Enum):
    """Días de la semana (nombres en inglés, en minúscula)."""
    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"


class EntityType(str, enum.Enum):
    """Niveles de la jerarquía: organization → complex → clinic → user."""
    ORGANIZATION = "organization"
    COMPLEX = "complex"
    CLINIC = "clinic"
    USER = "user"


class WorkingHours(Base):
    __tablename__ = "working_hours"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    entity_type: Mapped[EntityType] = mapped_column(
        Enum(EntityType, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False,
        comment="ID de la organización, complejo, clínica o usuario (sin FK: polimórfico)"
    )
    day_of_week: Mapped[DayOfWeek] = mapped_column(
        Enum(DayOfWeek, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    is_working_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # ── Horas "HH:mm" (NULL en días no laborables) ───
    opening_time: Mapped[str | None] = mapped_column(String(5))
    closing_time: Mapped[str | None] = mapped_column(String(5))
    break_start_time: Mapped[str | None] = mapped_column(String(5))
    break_end_time: Mapped[str | None] = mapped_column(String(5))

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint(
            "entity_type", "entity_id", "day_of_week",
            name="uq_working_hours_entity_day",
        ),
        Index("idx_working_hours_entity_active", "entity_type", "entity_id", "is_active"),
    )

    def __repr__(self) -> str:
        hours = (
            f"{self.opening_time}-{self.closing_time}" if self.is_working_day else "cerrado"
        )
        return f"<WorkingHours {self.entity_type.value}:{self.entity_id} {self.day_of_week.value} {hours}>"
