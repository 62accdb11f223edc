"""
Validación jerárquica de horarios: el horario de una entidad hija
(clínica, médico) debe estar contenido en el de su entidad superior.

También agrupa las escrituras que validan contra el padre antes de
persistir: alta con validación, actualización opcionalmente validada
y alta masiva de onboarding.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import messages
from app.core.cache import QueryCache
from app.core.exceptions import ValidationException
from app.core.messages import DAY_NAMES_ES, ENTITY_NAMES_ES
from app.core.time_utils import parse_time
from app.core.unit_of_work import UnitOfWork
from app.models.working_hours import EntityType, WorkingHours
from app.schemas.working_hours import (
    BulkWorkingHoursEntry,
    BulkWorkingHoursResult,
    DaySchedule,
    DaySuggestion,
    SuggestedRange,
    ValidationErrorItem,
    ValidationResult,
    WorkingHoursResponse,
    WorkingHoursWithParentCreate,
)
from app.services import entity_hierarchy_service, working_hours_service

logger = logging.getLogger(__name__)


# ── Validación ───────────────────────────────────────

def generate_suggestions(
    parent_schedule: list[DaySchedule], child_schedule: list[DaySchedule]
) -> list[DaySuggestion]:
    """Rango del padre para cada día en que ambos atienden y el padre tiene horas."""
    parent_by_day = {d.day_of_week: d for d in parent_schedule}
    suggestions = []
    for child_day in child_schedule:
        parent_day = parent_by_day.get(child_day.day_of_week)
        if (
            child_day.is_working_day
            and parent_day is not None
            and parent_day.is_working_day
            and parent_day.has_hours
        ):
            suggestions.append(
                DaySuggestion(
                    day_of_week=child_day.day_of_week,
                    suggested_range=SuggestedRange(
                        opening_time=parent_day.opening_time,
                        closing_time=parent_day.closing_time,
                    ),
                )
            )
    return suggestions


async def validate_hierarchical(
    db: AsyncSession,
    child_schedule: list[DaySchedule],
    parent_entity_type: EntityType,
    parent_entity_id: UUID,
    child_label: str,
    cache: QueryCache | None = None,
    use_cache: bool = True,
) -> ValidationResult:
    """
    Valida el horario hijo contra el horario activo del padre.

    1. Errores estructurales → un error 'general' por regla, sin mirar al padre.
    2. Padre sin registros activos → válido (sin restricciones que aplicar).
    3. Por cada día del hijo:
       - hijo atiende y el padre no tiene ese día o no atiende → un único error,
         sin rango sugerido;
       - ambos atienden con horas completas → un error por cada límite violado
         (apertura antes que el padre, cierre después), con el rango del padre.
    Los errores de un mismo día no se combinan.
    """
    structure_errors = working_hours_service.validate_schedule_structure(child_schedule)
    if structure_errors:
        return ValidationResult(
            is_valid=False,
            errors=[
                ValidationErrorItem(day_of_week="general", message=m) for m in structure_errors
            ],
        )

    parent_schedule = await working_hours_service.get_parent_working_hours(
        db, parent_entity_type, parent_entity_id, cache=cache, use_cache=use_cache
    )
    if not parent_schedule:
        logger.info(
            f"{parent_entity_type.value}:{parent_entity_id} sin horario activo; "
            f"{child_label} se acepta sin restricciones"
        )
        return ValidationResult(is_valid=True)

    parent_by_day = {d.day_of_week: d for d in parent_schedule}
    parent_params = {
        "parent_entity": parent_entity_type.value,
        "parent_entity_es": ENTITY_NAMES_ES[parent_entity_type.value],
    }
    errors: list[ValidationErrorItem] = []

    for child_day in child_schedule:
        day = child_day.day_of_week.value
        parent_day = parent_by_day.get(child_day.day_of_week)

        if child_day.is_working_day and (parent_day is None or not parent_day.is_working_day):
            errors.append(
                ValidationErrorItem(
                    day_of_week=day,
                    message=messages.CHILD_OPEN_PARENT_CLOSED.format(
                        child_entity=child_label, day=day, day_es=DAY_NAMES_ES[day],
                        **parent_params,
                    ),
                )
            )
            continue

        if not child_day.is_working_day or not (child_day.has_hours and parent_day.has_hours):
            continue

        suggested = SuggestedRange(
            opening_time=parent_day.opening_time, closing_time=parent_day.closing_time
        )
        if parse_time(child_day.opening_time) < parse_time(parent_day.opening_time):
            errors.append(
                ValidationErrorItem(
                    day_of_week=day,
                    message=messages.OPENING_BEFORE_PARENT.format(
                        child_opening=child_day.opening_time,
                        parent_opening=parent_day.opening_time,
                        **parent_params,
                    ),
                    suggested_range=suggested,
                )
            )
        if parse_time(child_day.closing_time) > parse_time(parent_day.closing_time):
            errors.append(
                ValidationErrorItem(
                    day_of_week=day,
                    message=messages.CLOSING_AFTER_PARENT.format(
                        child_closing=child_day.closing_time,
                        parent_closing=parent_day.closing_time,
                        **parent_params,
                    ),
                    suggested_range=suggested,
                )
            )

    if errors:
        logger.info(f"{child_label}: {len(errors)} errores contra {parent_entity_type.value}")
        return ValidationResult(
            is_valid=False,
            errors=errors,
            suggestions=generate_suggestions(parent_schedule, child_schedule),
        )
    return ValidationResult(is_valid=True)


async def validate_against_parent(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    schedule: list[DaySchedule],
    cache: QueryCache | None = None,
) -> ValidationResult:
    """
    Resuelve la entidad superior por la jerarquía y valida contra ella.
    Sin padre (o si no se pudo determinar) solo se valida la estructura.
    """
    parent = await entity_hierarchy_service.get_parent_entity(db, entity_type, entity_id)
    if parent is None:
        structure_errors = working_hours_service.validate_schedule_structure(schedule)
        return ValidationResult(
            is_valid=not structure_errors,
            errors=[
                ValidationErrorItem(day_of_week="general", message=m) for m in structure_errors
            ],
        )

    child_label = await entity_hierarchy_service.get_entity_name(
        db, entity_type, entity_id, cache=cache
    )
    return await validate_hierarchical(
        db, schedule, parent.entity_type, parent.entity_id, child_label, cache=cache
    )


def _raise_hierarchical_failure(result: ValidationResult) -> None:
    raise ValidationException(
        "HIERARCHICAL_VALIDATION_FAILED",
        messages.HIERARCHICAL_VALIDATION_FAILED,
        errors=[e.model_dump(mode="json") for e in result.errors],
    )


# ── Escrituras con validación ────────────────────────

async def create_working_hours_with_parent_validation(
    db: AsyncSession,
    data: WorkingHoursWithParentCreate,
    cache: QueryCache | None = None,
    use_cache: bool = True,
) -> list[WorkingHours]:
    """Valida estructura y contención en el padre indicado; luego reemplaza la semana."""
    working_hours_service.ensure_valid_structure(data.schedule)

    child_label = await entity_hierarchy_service.get_entity_name(
        db, data.entity_type, data.entity_id, cache=cache
    )
    result = await validate_hierarchical(
        db,
        data.schedule,
        data.parent_entity_type,
        data.parent_entity_id,
        child_label,
        cache=cache,
        use_cache=use_cache,
    )
    if not result.is_valid:
        _raise_hierarchical_failure(result)

    return await working_hours_service.replace_working_hours(
        db, data.entity_type, data.entity_id, data.schedule, cache=cache
    )


async def update_working_hours(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    schedule: list[DaySchedule],
    *,
    validate_with_parent: bool = False,
    parent_entity_type: EntityType | None = None,
    parent_entity_id: UUID | None = None,
    cache: QueryCache | None = None,
) -> list[WorkingHours]:
    """
    Reemplaza la semana de la entidad. Con `validate_with_parent` valida
    contra el padre indicado o, si no se indica, contra el de la jerarquía.
    """
    if not validate_with_parent:
        working_hours_service.ensure_valid_structure(schedule)
        return await working_hours_service.replace_working_hours(
            db, entity_type, entity_id, schedule, cache=cache
        )

    if parent_entity_type is not None and parent_entity_id is not None:
        return await create_working_hours_with_parent_validation(
            db,
            WorkingHoursWithParentCreate(
                entity_type=entity_type,
                entity_id=entity_id,
                schedule=schedule,
                parent_entity_type=parent_entity_type,
                parent_entity_id=parent_entity_id,
            ),
            cache=cache,
        )

    working_hours_service.ensure_valid_structure(schedule)
    result = await validate_against_parent(db, entity_type, entity_id, schedule, cache=cache)
    if not result.is_valid:
        _raise_hierarchical_failure(result)
    return await working_hours_service.replace_working_hours(
        db, entity_type, entity_id, schedule, cache=cache
    )


async def create_bulk_working_hours_with_validation(
    db: AsyncSession,
    entries: list[BulkWorkingHoursEntry],
    cache: QueryCache | None = None,
) -> list[BulkWorkingHoursResult]:
    """
    Alta masiva de onboarding. Procesa de arriba hacia abajo en la jerarquía
    (organization → complex → clinic → user) para que cada hijo se valide
    contra el horario del padre escrito en esta misma llamada; por eso el
    horario del padre se lee sin cache. Todo se confirma en una sola unidad
    de trabajo: si una entidad falla, no se guarda ninguna.
    """
    ordered = sorted(
        entries, key=lambda e: entity_hierarchy_service.HIERARCHY_DEPTH[e.entity_type]
    )
    results = []
    async with UnitOfWork(db):
        for entry in ordered:
            if entry.parent_entity_type is not None and entry.parent_entity_id is not None:
                rows = await create_working_hours_with_parent_validation(
                    db,
                    WorkingHoursWithParentCreate(
                        entity_type=entry.entity_type,
                        entity_id=entry.entity_id,
                        schedule=entry.schedule,
                        parent_entity_type=entry.parent_entity_type,
                        parent_entity_id=entry.parent_entity_id,
                    ),
                    cache=cache,
                    use_cache=False,
                )
            else:
                working_hours_service.ensure_valid_structure(entry.schedule)
                rows = await working_hours_service.replace_working_hours(
                    db, entry.entity_type, entry.entity_id, entry.schedule, cache=cache
                )
            results.append(
                BulkWorkingHoursResult(
                    entity_type=entry.entity_type,
                    entity_id=entry.entity_id,
                    working_hours=[WorkingHoursResponse.model_validate(r) for r in rows],
                )
            )

    logger.info(f"Alta masiva de horarios: {len(results)} entidades")
    return results
