"""
Sugerencias de horario para una entidad nueva, copiadas de su entidad
superior o, en la ruta genérica, del horario comercial estándar.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import messages
from app.core.cache import QueryCache
from app.core.exceptions import BadRequestException, NotFoundException
from app.models.working_hours import DayOfWeek, EntityType
from app.schemas.working_hours import (
    DaySchedule,
    EntitySource,
    SuggestedRole,
    SuggestionResult,
)
from app.services import entity_hierarchy_service, working_hours_service

logger = logging.getLogger(__name__)


# Lunes a viernes 09:00-17:00, sábado y domingo cerrado
STANDARD_BUSINESS_HOURS: tuple[DaySchedule, ...] = (
    DaySchedule(day_of_week=DayOfWeek.SUNDAY, is_working_day=False),
    *(
        DaySchedule(
            day_of_week=day, is_working_day=True, opening_time="09:00", closing_time="17:00"
        )
        for day in (
            DayOfWeek.MONDAY,
            DayOfWeek.TUESDAY,
            DayOfWeek.WEDNESDAY,
            DayOfWeek.THURSDAY,
            DayOfWeek.FRIDAY,
        )
    ),
    DaySchedule(day_of_week=DayOfWeek.SATURDAY, is_working_day=False),
)

# rol → (tipo de la entidad fuente, código si falta el id, código si no hay horario)
_ROLE_SOURCES = {
    SuggestedRole.DOCTOR: (
        EntityType.CLINIC,
        ("CLINIC_ID_REQUIRED", messages.CLINIC_ID_REQUIRED),
        ("CLINIC_HOURS_NOT_FOUND", messages.CLINIC_HOURS_NOT_FOUND),
    ),
    SuggestedRole.STAFF: (
        EntityType.COMPLEX,
        ("COMPLEX_ID_REQUIRED", messages.COMPLEX_ID_REQUIRED),
        ("COMPLEX_HOURS_NOT_FOUND", messages.COMPLEX_HOURS_NOT_FOUND),
    ),
}


async def get_suggested_hours(
    db: AsyncSession,
    role: str,
    clinic_id: UUID | None = None,
    complex_id: UUID | None = None,
    cache: QueryCache | None = None,
) -> SuggestionResult:
    """
    Horario sugerido para personal nuevo: el de la clínica para un médico,
    el del complejo para staff. A diferencia de la validación, aquí no hay
    fail-open: sin id, sin entidad o sin horario activo → 404.
    """
    try:
        suggested_role = SuggestedRole(role)
    except ValueError:
        raise BadRequestException("INVALID_ROLE", messages.INVALID_ROLE.format(role=role))

    source_type, id_required, hours_not_found = _ROLE_SOURCES[suggested_role]
    source_id = clinic_id if source_type == EntityType.CLINIC else complex_id
    if source_id is None:
        raise NotFoundException(*id_required)

    details = await entity_hierarchy_service.get_entity_details(
        db, source_type, source_id, cache=cache
    )
    rows = await working_hours_service.get_working_hours(db, source_type, source_id)
    if not rows:
        raise NotFoundException(*hours_not_found)

    return SuggestionResult(
        suggested_schedule=working_hours_service.to_day_schedules(rows),
        source=EntitySource(
            entity_type=source_type, entity_id=source_id, entity_name=details["name"]
        ),
        can_modify=True,
    )


async def get_suggestions(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    cache: QueryCache | None = None,
) -> SuggestionResult:
    """
    Ruta genérica: sube por la jerarquía hasta el primer ancestro con
    horario activo. Si ninguno tiene, devuelve el horario comercial estándar.
    """
    current_type, current_id = entity_type, entity_id
    for _ in entity_hierarchy_service.HIERARCHY_DEPTH:
        parent = await entity_hierarchy_service.get_parent_entity(db, current_type, current_id)
        if parent is None:
            break
        rows = await working_hours_service.get_working_hours(
            db, parent.entity_type, parent.entity_id
        )
        if rows:
            name = await entity_hierarchy_service.get_entity_name(
                db, parent.entity_type, parent.entity_id, cache=cache
            )
            return SuggestionResult(
                suggested_schedule=working_hours_service.to_day_schedules(rows),
                source=EntitySource(
                    entity_type=parent.entity_type,
                    entity_id=parent.entity_id,
                    entity_name=name,
                ),
            )
        current_type, current_id = parent.entity_type, parent.entity_id

    logger.info(
        f"{entity_type.value}:{entity_id} sin ancestros con horario; se sugiere el estándar"
    )
    return SuggestionResult(
        suggested_schedule=[d.model_copy() for d in STANDARD_BUSINESS_HOURS]
    )
