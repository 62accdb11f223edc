"""
Endpoints de horarios de atención: registro, validación jerárquica,
sugerencias, detección de conflictos y actualización con reprogramación.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import messages
from app.core.cache import QueryCache, get_query_cache
from app.core.exceptions import BadRequestException
from app.database import get_db
from app.models.working_hours import EntityType
from app.schemas.working_hours import (
    ApiResponse,
    BulkWorkingHoursRequest,
    BulkWorkingHoursResult,
    CheckConflictsRequest,
    ConflictResult,
    ReschedulingResult,
    SuggestionResult,
    UpdateWithReschedulingRequest,
    ValidateWorkingHoursRequest,
    ValidationResult,
    WorkingHoursCreate,
    WorkingHoursResponse,
    WorkingHoursUpdate,
    WorkingHoursWithParentCreate,
)
from app.services import (
    appointment_conflict_service,
    entity_hierarchy_service,
    working_hours_rescheduling_service,
    working_hours_service,
    working_hours_suggestion_service,
    working_hours_validation_service,
)

router = APIRouter()


def _to_response(rows) -> list[WorkingHoursResponse]:
    return [WorkingHoursResponse.model_validate(r) for r in rows]


# ── Registro ─────────────────────────────────────────

@router.post(
    "", response_model=ApiResponse[list[WorkingHoursResponse]], status_code=201
)
async def create_working_hours(
    data: WorkingHoursCreate,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """Registra la semana de una entidad (reemplaza la anterior). Solo validación estructural."""
    rows = await working_hours_service.create_working_hours(db, data, cache=cache)
    return ApiResponse(data=_to_response(rows), message=messages.WORKING_HOURS_CREATED)


@router.post(
    "/with-parent-validation",
    response_model=ApiResponse[list[WorkingHoursResponse]],
    status_code=201,
)
async def create_working_hours_with_parent_validation(
    data: WorkingHoursWithParentCreate,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Registra la semana solo si cabe dentro del horario de la entidad superior
    indicada. Si no, 422 HIERARCHICAL_VALIDATION_FAILED con errores por día.
    """
    rows = await working_hours_validation_service.create_working_hours_with_parent_validation(
        db, data, cache=cache
    )
    return ApiResponse(data=_to_response(rows), message=messages.WORKING_HOURS_CREATED)


@router.post(
    "/bulk", response_model=ApiResponse[list[BulkWorkingHoursResult]], status_code=201
)
async def create_bulk_working_hours(
    data: BulkWorkingHoursRequest,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """Alta masiva de onboarding, validando cada entidad contra su padre."""
    results = await working_hours_validation_service.create_bulk_working_hours_with_validation(
        db, data.entries, cache=cache
    )
    return ApiResponse(
        data=results,
        message=messages.BULK_WORKING_HOURS_CREATED.format(count=len(results)),
    )


# ── Validación y sugerencias ─────────────────────────

@router.post("/validate", response_model=ApiResponse[ValidationResult])
async def validate_working_hours(
    data: ValidateWorkingHoursRequest,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Valida un horario contra el de la entidad superior sin guardarlo.
    Las violaciones se devuelven como datos (is_valid=False), no como error HTTP.
    """
    child_label = await entity_hierarchy_service.get_entity_name(
        db, data.entity_type, data.entity_id, cache=cache
    )
    result = await working_hours_validation_service.validate_hierarchical(
        db,
        data.schedule,
        data.parent_entity_type,
        data.parent_entity_id,
        child_label,
        cache=cache,
    )
    message = messages.VALIDATION_PASSED if result.is_valid else messages.VALIDATION_FAILED
    return ApiResponse(data=result, message=message)


@router.get(
    "/suggest/{entity_type}/{entity_id}", response_model=ApiResponse[SuggestionResult]
)
async def suggest_working_hours(
    entity_type: EntityType,
    entity_id: UUID,
    role: str = Query(..., description="doctor (horario de la clínica) o staff (del complejo)"),
    clinic_id: UUID | None = Query(None),
    complex_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Horario sugerido para personal nuevo según su rol.

    `entity_type` y `entity_id` se aceptan sólo por compatibilidad de ruta:
    la sugerencia depende únicamente de `role` y de `clinic_id`/`complex_id`.
    """
    result = await working_hours_suggestion_service.get_suggested_hours(
        db, role, clinic_id=clinic_id, complex_id=complex_id, cache=cache
    )
    return ApiResponse(data=result, message=messages.SUGGESTION_RETRIEVED)


@router.get(
    "/suggestions/{entity_type}/{entity_id}", response_model=ApiResponse[SuggestionResult]
)
async def get_hierarchy_suggestions(
    entity_type: EntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """Horario del ancestro más cercano con horario, o el estándar L-V 09:00-17:00."""
    result = await working_hours_suggestion_service.get_suggestions(
        db, entity_type, entity_id, cache=cache
    )
    return ApiResponse(data=result, message=messages.SUGGESTION_RETRIEVED)


# ── Conflictos y reprogramación ──────────────────────

@router.post("/check-conflicts", response_model=ApiResponse[ConflictResult])
async def check_conflicts(
    data: CheckConflictsRequest,
    db: AsyncSession = Depends(get_db),
):
    """Citas futuras del médico que quedarían fuera del horario propuesto."""
    result = await appointment_conflict_service.check_conflicts(db, data.user_id, data.schedule)
    message = (
        messages.CONFLICTS_FOUND.format(count=result.affected_appointments)
        if result.has_conflicts
        else messages.NO_CONFLICTS
    )
    return ApiResponse(data=result, message=message)


@router.put(
    "/{entity_type}/{entity_id}/with-rescheduling",
    response_model=ApiResponse[ReschedulingResult],
)
async def update_with_rescheduling(
    entity_type: EntityType,
    entity_id: UUID,
    data: UpdateWithReschedulingRequest,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Reemplaza el horario de un médico y resuelve sus citas en conflicto
    (reschedule / notify / cancel) en una sola transacción.
    """
    if entity_type != EntityType.USER:
        raise BadRequestException(
            "INVALID_ENTITY_TYPE",
            messages.INVALID_ENTITY_TYPE.format(entity_type=entity_type.value),
        )
    result = await working_hours_rescheduling_service.update_with_rescheduling(
        db, entity_type, entity_id, data, cache=cache
    )
    return ApiResponse(
        data=result,
        message=messages.RESCHEDULING_COMPLETED.format(
            rescheduled=result.appointments_rescheduled,
            marked=result.appointments_marked_for_rescheduling,
            cancelled=result.appointments_cancelled,
        ),
    )


# ── Por entidad ──────────────────────────────────────

@router.get(
    "/{entity_type}/{entity_id}", response_model=ApiResponse[list[WorkingHoursResponse]]
)
async def get_working_hours(
    entity_type: EntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Semana activa de la entidad, domingo-primero. 404 si no tiene horario."""
    rows = await working_hours_service.get_working_hours_or_404(db, entity_type, entity_id)
    return ApiResponse(data=_to_response(rows), message=messages.WORKING_HOURS_RETRIEVED)


@router.put(
    "/{entity_type}/{entity_id}", response_model=ApiResponse[list[WorkingHoursResponse]]
)
async def update_working_hours(
    entity_type: EntityType,
    entity_id: UUID,
    data: WorkingHoursUpdate,
    validate_with_parent: bool = Query(False),
    parent_entity_type: EntityType | None = Query(None),
    parent_entity_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Reemplaza la semana de la entidad. Con `validate_with_parent=true` valida
    contra el padre indicado o, si se omite, contra el de la jerarquía.
    """
    rows = await working_hours_validation_service.update_working_hours(
        db,
        entity_type,
        entity_id,
        data.schedule,
        validate_with_parent=validate_with_parent,
        parent_entity_type=parent_entity_type,
        parent_entity_id=parent_entity_id,
        cache=cache,
    )
    return ApiResponse(data=_to_response(rows), message=messages.WORKING_HOURS_UPDATED)


@router.delete("/{entity_type}/{entity_id}", response_model=ApiResponse[dict])
async def deactivate_working_hours(
    entity_type: EntityType,
    entity_id: UUID,
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_query_cache),
):
    """Desactiva (soft) la semana de la entidad."""
    count = await working_hours_service.deactivate_working_hours(
        db, entity_type, entity_id, cache=cache
    )
    return ApiResponse(
        data={"deactivated_days": count}, message=messages.WORKING_HOURS_DEACTIVATED
    )
