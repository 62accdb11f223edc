"""
Modelo Notification — Aviso in-app para un paciente.

Solo se registra el aviso (delivery_status=pending); el envío lo hace
otro servicio.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class NotificationType(str, enum.Enum):
    APPOINTMENT_RESCHEDULED = "appointment_rescheduled"
    APPOINTMENT_NEEDS_RESCHEDULING = "appointment_needs_rescheduling"
    APPOINTMENT_CANCELLED = "appointment_cancelled"


class NotificationPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class DeliveryStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, comment="Paciente destinatario"
    )

    # ── Contenido bilingüe {"es": ..., "en": ...} ────
    title: Mapped[dict] = mapped_column(JSONType, nullable=False)
    message: Mapped[dict] = mapped_column(JSONType, nullable=False)

    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    priority: Mapped[NotificationPriority] = mapped_column(
        Enum(NotificationPriority, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=NotificationPriority.NORMAL,
    )

    # ── Entidad relacionada ──────────────────────────
    related_entity_type: Mapped[str | None] = mapped_column(String(50))
    related_entity_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    # ── Entrega ──────────────────────────────────────
    delivery_method: Mapped[str] = mapped_column(
        String(20), nullable=False, default="in_app"
    )
    delivery_status: Mapped[DeliveryStatus] = mapped_column(
        Enum(DeliveryStatus, values_callable=lambda e: [x.value for x in e]),
        nullable=False, default=DeliveryStatus.PENDING,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("idx_notification_recipient", "recipient_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Notification {self.notification_type.value} → {self.recipient_id}>"
