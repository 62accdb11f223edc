"""
Modelos SQLAlchemy — exportar todos para que Alembic los detecte.
"""

from app.models.organization import Organization
from app.models.complex import Complex
from app.models.clinic import Clinic
from app.models.user import User, UserRole
from app.models.patient import Patient
from app.models.appointment import Appointment, AppointmentStatus
from app.models.working_hours import WorkingHours, DayOfWeek, EntityType
from app.models.notification import Notification, NotificationType
from app.models.audit_log import AuditLog

__all__ = [
    "Organization",
    "Complex",
    "Clinic",
    "User",
    "UserRole",
    "Patient",
    "Appointment",
    "AppointmentStatus",
    "WorkingHours",
    "DayOfWeek",
    "EntityType",
    "Notification",
    "NotificationType",
    "AuditLog",
]
