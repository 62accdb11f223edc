"""
Avisos in-app a pacientes por cambios en sus citas.
Solo se registran (delivery_status=pending); el envío lo hace otro servicio.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import messages
from app.core.messages import BilingualMessage
from app.models.notification import (
    DeliveryStatus,
    Notification,
    NotificationPriority,
    NotificationType,
)
from app.schemas.working_hours import RescheduledAppointment, ReschedulingOutcome

logger = logging.getLogger(__name__)

# El contenido depende de lo que finalmente le pasó a la cita
OUTCOME_TEMPLATES: dict[
    ReschedulingOutcome, tuple[NotificationType, BilingualMessage, BilingualMessage]
] = {
    ReschedulingOutcome.RESCHEDULED: (
        NotificationType.APPOINTMENT_RESCHEDULED,
        messages.NOTIFICATION_RESCHEDULED_TITLE,
        messages.NOTIFICATION_RESCHEDULED_BODY,
    ),
    ReschedulingOutcome.MARKED_FOR_RESCHEDULING: (
        NotificationType.APPOINTMENT_NEEDS_RESCHEDULING,
        messages.NOTIFICATION_NEEDS_RESCHEDULING_TITLE,
        messages.NOTIFICATION_NEEDS_RESCHEDULING_BODY,
    ),
    ReschedulingOutcome.CANCELLED: (
        NotificationType.APPOINTMENT_CANCELLED,
        messages.NOTIFICATION_CANCELLED_TITLE,
        messages.NOTIFICATION_CANCELLED_BODY,
    ),
}


def build_appointment_notification(detail: RescheduledAppointment) -> Notification:
    """Aviso para el paciente con la fecha y hora ORIGINALES de la cita."""
    notification_type, title, body = OUTCOME_TEMPLATES[detail.status]
    return Notification(
        recipient_id=detail.patient_id,
        title=title.model_dump(),
        message=body.format(
            date=detail.appointment_date.isoformat(), time=detail.original_time
        ).model_dump(),
        notification_type=notification_type,
        priority=NotificationPriority.HIGH,
        related_entity_type="appointment",
        related_entity_id=detail.appointment_id,
        delivery_method="in_app",
        delivery_status=DeliveryStatus.PENDING,
        is_read=False,
    )


async def create_appointment_notifications(
    db: AsyncSession, details: list[RescheduledAppointment]
) -> int:
    """Inserta un aviso por cita afectada (flush, sin commit). Devuelve cuántos."""
    if not details:
        return 0
    notifications = [build_appointment_notification(d) for d in details]
    db.add_all(notifications)
    await db.flush()
    logger.info(f"{len(notifications)} avisos a pacientes registrados")
    return len(notifications)
