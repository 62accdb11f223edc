"""
Schemas Pydantic para horarios de atención, validación jerárquica,
conflictos con citas, reprogramación y sugerencias.
"""

import enum
from datetime import date
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.messages import BilingualMessage
from app.models.working_hours import DayOfWeek, EntityType

T = TypeVar("T")


# ── Envelope de respuesta ────────────────────────────

class ApiResponse(BaseModel, Generic[T]):
    """Respuesta estándar: {success, data, message{es,en}}."""
    success: bool = True
    data: T
    message: BilingualMessage


# ── Horario por día ──────────────────────────────────

class DaySchedule(BaseModel):
    """
    Horario de un día. Las horas son "HH:mm"; el formato y el orden se
    validan en el servicio para devolver errores por día en ambos idiomas.
    Sin apertura ni cierre en un día laborable = atiende todo el día.
    """
    day_of_week: DayOfWeek
    is_working_day: bool = True
    opening_time: str | None = None
    closing_time: str | None = None
    break_start_time: str | None = None
    break_end_time: str | None = None

    model_config = {"from_attributes": True}

    @field_validator(
        "opening_time", "closing_time", "break_start_time", "break_end_time",
        mode="before",
    )
    @classmethod
    def blank_as_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def has_hours(self) -> bool:
        return self.opening_time is not None and self.closing_time is not None


class WorkingHoursResponse(DaySchedule):
    """Registro persistido de un día."""
    id: UUID
    entity_type: EntityType
    entity_id: UUID
    is_active: bool


class WorkingHoursCreate(BaseModel):
    entity_type: EntityType
    entity_id: UUID
    schedule: list[DaySchedule] = Field(..., min_length=1, max_length=7)


class WorkingHoursUpdate(BaseModel):
    schedule: list[DaySchedule] = Field(..., min_length=1, max_length=7)


class WorkingHoursWithParentCreate(WorkingHoursCreate):
    """Creación validando contra el horario de la entidad superior indicada."""
    parent_entity_type: EntityType
    parent_entity_id: UUID


class BulkWorkingHoursEntry(BaseModel):
    """Una entidad dentro del alta masiva (onboarding)."""
    entity_type: EntityType
    entity_id: UUID
    parent_entity_type: EntityType | None = None
    parent_entity_id: UUID | None = None
    schedule: list[DaySchedule] = Field(..., min_length=1, max_length=7)


class BulkWorkingHoursRequest(BaseModel):
    entries: list[BulkWorkingHoursEntry] = Field(..., min_length=1)


class BulkWorkingHoursResult(BaseModel):
    entity_type: EntityType
    entity_id: UUID
    working_hours: list[WorkingHoursResponse]


# ── Validación jerárquica ────────────────────────────

class ValidateWorkingHoursRequest(BaseModel):
    entity_type: EntityType
    entity_id: UUID
    parent_entity_type: EntityType
    parent_entity_id: UUID
    schedule: list[DaySchedule] = Field(..., min_length=1, max_length=7)


class SuggestedRange(BaseModel):
    """Rango permitido por la entidad superior para ese día."""
    opening_time: str
    closing_time: str


class ValidationErrorItem(BaseModel):
    day_of_week: str = Field(
        ..., description="Día afectado o 'general' si es un error estructural"
    )
    message: BilingualMessage
    suggested_range: SuggestedRange | None = None


class DaySuggestion(BaseModel):
    day_of_week: DayOfWeek
    suggested_range: SuggestedRange


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[ValidationErrorItem] = Field(default_factory=list)
    suggestions: list[DaySuggestion] = Field(
        default_factory=list,
        description="Rangos del padre para cada día laborable en común (solo si is_valid=False)",
    )


# ── Conflictos con citas ─────────────────────────────

class CheckConflictsRequest(BaseModel):
    user_id: UUID = Field(..., description="Médico cuyo horario se quiere cambiar")
    schedule: list[DaySchedule] = Field(..., min_length=1, max_length=7)


class ConflictRecord(BaseModel):
    appointment_id: UUID
    patient_id: UUID
    patient_name: str
    appointment_date: date
    appointment_time: str
    duration_minutes: int
    day_of_week: DayOfWeek
    conflict_reason: BilingualMessage


class ConflictResult(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictRecord] = Field(default_factory=list)
    affected_appointments: int = 0
    requires_rescheduling: bool = False


# ── Reprogramación ───────────────────────────────────

class ConflictStrategy(str, enum.Enum):
    """Qué hacer con las citas que quedan fuera del nuevo horario."""
    RESCHEDULE = "reschedule"
    NOTIFY = "notify"
    CANCEL = "cancel"


class ReschedulingOutcome(str, enum.Enum):
    RESCHEDULED = "rescheduled"
    MARKED_FOR_RESCHEDULING = "marked_for_rescheduling"
    CANCELLED = "cancelled"


class UpdateWithReschedulingRequest(BaseModel):
    schedule: list[DaySchedule] = Field(..., min_length=1, max_length=7)
    handle_conflicts: ConflictStrategy
    notify_patients: bool = True
    rescheduling_reason: str | None = Field(None, max_length=500)


class RescheduledAppointment(BaseModel):
    appointment_id: UUID
    patient_id: UUID
    appointment_date: date
    original_time: str
    new_time: str | None = None
    status: ReschedulingOutcome
    reason: str


class ReschedulingResult(BaseModel):
    success: bool = True
    appointments_rescheduled: int = 0
    appointments_marked_for_rescheduling: int = 0
    appointments_cancelled: int = 0
    notifications_sent: int = 0
    details: list[RescheduledAppointment] = Field(default_factory=list)
    working_hours: list[WorkingHoursResponse] = Field(default_factory=list)


# ── Sugerencias ──────────────────────────────────────

class SuggestedRole(str, enum.Enum):
    DOCTOR = "doctor"
    STAFF = "staff"


class EntitySource(BaseModel):
    """Entidad de la que se copió el horario sugerido."""
    entity_type: EntityType
    entity_id: UUID
    entity_name: str


class SuggestionResult(BaseModel):
    suggested_schedule: list[DaySchedule]
    source: EntitySource | None = Field(
        None, description="None cuando se usa el horario comercial estándar"
    )
    can_modify: bool = True
