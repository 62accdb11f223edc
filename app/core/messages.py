"""
Mensajes bilingües (español / inglés).

Todo mensaje visible al usuario (errores, resultados de validación y
notificaciones a pacientes) se construye como `BilingualMessage`, nunca
como un dict libre.
"""

from pydantic import BaseModel, ConfigDict


class BilingualMessage(BaseModel):
    """Par de textos {es, en}. Inmutable."""

    model_config = ConfigDict(frozen=True)

    es: str
    en: str

    def format(self, **params: object) -> "BilingualMessage":
        """Reemplaza los placeholders `{clave}` en ambos idiomas."""
        return BilingualMessage(
            es=self.es.format(**params),
            en=self.en.format(**params),
        )

    def __str__(self) -> str:
        return self.en


def msg(es: str, en: str) -> BilingualMessage:
    return BilingualMessage(es=es, en=en)


# ── Días de la semana ────────────────────────────────
DAY_NAMES_ES: dict[str, str] = {
    "sunday": "domingo",
    "monday": "lunes",
    "tuesday": "martes",
    "wednesday": "miércoles",
    "thursday": "jueves",
    "friday": "viernes",
    "saturday": "sábado",
}

ENTITY_NAMES_ES: dict[str, str] = {
    "organization": "organización",
    "complex": "complejo",
    "clinic": "clínica",
    "user": "usuario",
}


# ── Validación estructural ───────────────────────────
DUPLICATE_DAY = msg(
    "El día {day_es} está duplicado en el horario",
    "Day {day} appears more than once in the schedule",
)
INVALID_TIME_FORMAT = msg(
    "El campo {field} de {day_es} tiene un formato de hora inválido ({value}), se espera HH:mm",
    "Field {field} on {day} has an invalid time format ({value}), expected HH:mm",
)
OPENING_CLOSING_REQUIRED = msg(
    "Hora de apertura y de cierre deben indicarse juntas para {day_es}",
    "Opening and closing time must be provided together for {day}",
)
OPENING_BEFORE_CLOSING = msg(
    "La hora de apertura ({opening}) debe ser anterior a la de cierre ({closing}) el {day_es}",
    "Opening time ({opening}) must be before closing time ({closing}) on {day}",
)
BREAK_PAIR_REQUIRED = msg(
    "Inicio y fin del descanso deben indicarse juntos para {day_es}",
    "Break start and break end must be provided together for {day}",
)
BREAK_START_BEFORE_END = msg(
    "El inicio del descanso ({start}) debe ser anterior a su fin ({end}) el {day_es}",
    "Break start ({start}) must be before break end ({end}) on {day}",
)
BREAK_WITHIN_HOURS = msg(
    "El descanso ({start} - {end}) debe estar dentro del horario {opening} - {closing} el {day_es}",
    "Break ({start} - {end}) must lie within working hours {opening} - {closing} on {day}",
)

# ── Validación jerárquica ────────────────────────────
CHILD_OPEN_PARENT_CLOSED = msg(
    "{child_entity} no puede atender el {day_es} porque la entidad superior ({parent_entity_es}) no atiende ese día",
    "{child_entity} cannot work on {day} because the {parent_entity} is closed on that day",
)
OPENING_BEFORE_PARENT = msg(
    "El horario debe estar dentro del horario de la entidad superior ({parent_entity_es}). "
    "La apertura ({child_opening}) debe ser igual o posterior a {parent_opening}",
    "Working hours must be within {parent_entity} hours. "
    "Opening time ({child_opening}) must be at or after {parent_opening}",
)
CLOSING_AFTER_PARENT = msg(
    "El horario debe estar dentro del horario de la entidad superior ({parent_entity_es}). "
    "El cierre ({child_closing}) debe ser igual o anterior a {parent_closing}",
    "Working hours must be within {parent_entity} hours. "
    "Closing time ({child_closing}) must be at or before {parent_closing}",
)

# ── Conflictos con citas ─────────────────────────────
CONFLICT_DAY_NOT_WORKING = msg(
    "El {day_es} ya no es día laborable",
    "{day} is no longer a working day",
)
CONFLICT_BEFORE_OPENING = msg(
    "La cita de las {appointment_time} es anterior a la nueva hora de apertura {opening}",
    "Appointment at {appointment_time} is before new opening time {opening}",
)
CONFLICT_AFTER_CLOSING = msg(
    "La cita termina después de la nueva hora de cierre {closing}",
    "Appointment ends after new closing time {closing}",
)
CONFLICT_DURING_BREAK = msg(
    "La cita se cruza con el horario de descanso ({break_start} - {break_end})",
    "Appointment conflicts with break time ({break_start} - {break_end})",
)
CONFLICT_OUTSIDE_HOURS = msg(
    "La cita está fuera del nuevo horario de atención",
    "Appointment is outside new working hours",
)

# ── Motivos por defecto de reprogramación ────────────
DEFAULT_NOTIFY_REASON = "Working hours changed - requires rescheduling"
DEFAULT_CANCEL_REASON = "Working hours changed"
AUTO_RESCHEDULE_REASON = "Automatically rescheduled due to working hours change"
NO_SLOT_REASON = "No suitable time slot available - requires manual rescheduling"
DAY_NOT_WORKING_REASON = "Day is no longer a working day"

# ── Notificaciones a pacientes ───────────────────────
NOTIFICATION_RESCHEDULED_TITLE = msg("Cita reprogramada", "Appointment Rescheduled")
NOTIFICATION_RESCHEDULED_BODY = msg(
    "Su cita del {date} a las {time} fue reprogramada por cambios en el horario del médico. "
    "Revise la nueva hora.",
    "Your appointment on {date} at {time} has been rescheduled due to doctor schedule changes. "
    "Please check the new time.",
)
NOTIFICATION_NEEDS_RESCHEDULING_TITLE = msg(
    "Su cita requiere reprogramación", "Appointment Requires Rescheduling"
)
NOTIFICATION_NEEDS_RESCHEDULING_BODY = msg(
    "Su cita del {date} a las {time} debe reprogramarse por cambios en el horario del médico. "
    "Contáctenos para elegir un nuevo horario.",
    "Your appointment on {date} at {time} needs to be rescheduled due to doctor schedule changes. "
    "Please contact us to reschedule.",
)
NOTIFICATION_CANCELLED_TITLE = msg("Cita cancelada", "Appointment Cancelled")
NOTIFICATION_CANCELLED_BODY = msg(
    "Su cita del {date} a las {time} fue cancelada por cambios en el horario del médico. "
    "Contáctenos para reservar una nueva cita.",
    "Your appointment on {date} at {time} has been cancelled due to doctor schedule changes. "
    "Please contact us to book a new appointment.",
)

# ── Respuestas de la API ─────────────────────────────
WORKING_HOURS_CREATED = msg(
    "Horario de atención registrado correctamente", "Working hours created successfully"
)
WORKING_HOURS_UPDATED = msg(
    "Horario de atención actualizado correctamente", "Working hours updated successfully"
)
WORKING_HOURS_RETRIEVED = msg(
    "Horario de atención obtenido correctamente", "Working hours retrieved successfully"
)
WORKING_HOURS_DEACTIVATED = msg(
    "Horario de atención desactivado", "Working hours deactivated"
)
BULK_WORKING_HOURS_CREATED = msg(
    "Se registraron {count} horarios de atención", "{count} working-hours sets created"
)
VALIDATION_PASSED = msg(
    "El horario es válido respecto a la entidad superior",
    "Working hours are valid against the parent entity",
)
VALIDATION_FAILED = msg(
    "El horario no respeta el horario de la entidad superior",
    "Working hours violate the parent entity hours",
)
SUGGESTION_RETRIEVED = msg(
    "Horario sugerido obtenido correctamente", "Suggested working hours retrieved successfully"
)
NO_CONFLICTS = msg(
    "No se encontraron citas en conflicto", "No conflicting appointments found"
)
CONFLICTS_FOUND = msg(
    "Se encontraron {count} citas en conflicto con el nuevo horario",
    "Found {count} appointments conflicting with the new schedule",
)
RESCHEDULING_COMPLETED = msg(
    "Horario actualizado: {rescheduled} citas reprogramadas, {marked} marcadas para "
    "reprogramación, {cancelled} canceladas",
    "Working hours updated: {rescheduled} appointments rescheduled, {marked} marked for "
    "rescheduling, {cancelled} cancelled",
)

# ── Errores ──────────────────────────────────────────
SCHEDULE_VALIDATION_FAILED = msg(
    "El horario enviado es inválido", "The submitted schedule is invalid"
)
HIERARCHICAL_VALIDATION_FAILED = msg(
    "El horario excede el horario de la entidad superior",
    "Working hours exceed the parent entity hours",
)
REQUEST_VALIDATION_FAILED = msg(
    "Datos de entrada inválidos", "Invalid request data"
)
WORKING_HOURS_NOT_FOUND = msg(
    "No se encontró horario de atención para {entity_type} {entity_id}",
    "No working hours found for {entity_type} {entity_id}",
)
INVALID_ENTITY_TYPE = msg(
    "Tipo de entidad inválido para esta operación: {entity_type}",
    "Invalid entity type for this operation: {entity_type}",
)
INVALID_ROLE = msg(
    "Rol inválido: {role}. Use doctor o staff",
    "Invalid role: {role}. Use doctor or staff",
)
CLINIC_ID_REQUIRED = msg(
    "Se requiere clinic_id para el rol doctor", "clinic_id is required for role doctor"
)
COMPLEX_ID_REQUIRED = msg(
    "Se requiere complex_id para el rol staff", "complex_id is required for role staff"
)
CLINIC_NOT_FOUND = msg("Clínica no encontrada", "Clinic not found")
COMPLEX_NOT_FOUND = msg("Complejo no encontrado", "Complex not found")
ORGANIZATION_NOT_FOUND = msg("Organización no encontrada", "Organization not found")
USER_NOT_FOUND = msg("Usuario no encontrado", "User not found")
CLINIC_HOURS_NOT_FOUND = msg(
    "La clínica no tiene horario de atención registrado",
    "The clinic has no working hours configured",
)
COMPLEX_HOURS_NOT_FOUND = msg(
    "El complejo no tiene horario de atención registrado",
    "The complex has no working hours configured",
)
INTERNAL_ERROR = msg("Error interno del servidor", "Internal server error")
