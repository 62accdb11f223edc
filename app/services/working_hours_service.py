"""
Servicio de horarios de atención: validación estructural de la semana y
acceso a los registros por entidad (lectura cacheada del padre,
reemplazo completo y desactivación).
"""

import logging
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core import messages
from app.core.cache import QueryCache, WorkingHoursCacheKeys, resolve_cache
from app.core.exceptions import NotFoundException, ValidationException
from app.core.messages import BilingualMessage, DAY_NAMES_ES
from app.core.time_utils import day_index, is_valid_time, parse_time
from app.models.working_hours import EntityType, WorkingHours
from app.schemas.working_hours import DaySchedule, WorkingHoursCreate
from app.services import audit_service

logger = logging.getLogger(__name__)
settings = get_settings()

TIME_FIELDS = ("opening_time", "closing_time", "break_start_time", "break_end_time")


# ── Validación estructural ───────────────────────────

def validate_schedule_structure(schedule: list[DaySchedule]) -> list[BilingualMessage]:
    """
    Reglas de forma de la semana, sin mirar a la entidad superior:
    - un registro por día;
    - horas "HH:mm" válidas;
    - apertura y cierre juntos (o ninguno: atiende todo el día), apertura < cierre;
    - descanso completo o ausente, inicio < fin, dentro del horario.
    En días no laborables las horas se ignoran.
    """
    errors: list[BilingualMessage] = []
    seen = set()

    for day in schedule:
        params = {"day": day.day_of_week.value, "day_es": DAY_NAMES_ES[day.day_of_week.value]}

        if day.day_of_week in seen:
            errors.append(messages.DUPLICATE_DAY.format(**params))
            continue
        seen.add(day.day_of_week)

        if not day.is_working_day:
            continue

        malformed = False
        for field in TIME_FIELDS:
            value = getattr(day, field)
            if value is not None and not is_valid_time(value):
                errors.append(messages.INVALID_TIME_FORMAT.format(field=field, value=value, **params))
                malformed = True
        if malformed:
            continue

        opening, closing = day.opening_time, day.closing_time
        if (opening is None) != (closing is None):
            errors.append(messages.OPENING_CLOSING_REQUIRED.format(**params))
        elif day.has_hours and parse_time(opening) >= parse_time(closing):
            errors.append(
                messages.OPENING_BEFORE_CLOSING.format(opening=opening, closing=closing, **params)
            )

        break_start, break_end = day.break_start_time, day.break_end_time
        if (break_start is None) != (break_end is None):
            errors.append(messages.BREAK_PAIR_REQUIRED.format(**params))
        elif break_start is not None:
            if parse_time(break_start) >= parse_time(break_end):
                errors.append(
                    messages.BREAK_START_BEFORE_END.format(start=break_start, end=break_end, **params)
                )
            elif day.has_hours and (
                parse_time(break_start) < parse_time(opening)
                or parse_time(break_end) > parse_time(closing)
            ):
                errors.append(
                    messages.BREAK_WITHIN_HOURS.format(
                        start=break_start, end=break_end,
                        opening=opening, closing=closing, **params,
                    )
                )

    return errors


def ensure_valid_structure(schedule: list[DaySchedule]) -> None:
    """Lanza 422 SCHEDULE_VALIDATION_FAILED con un error por regla violada."""
    errors = validate_schedule_structure(schedule)
    if errors:
        raise ValidationException(
            "SCHEDULE_VALIDATION_FAILED",
            messages.SCHEDULE_VALIDATION_FAILED,
            errors=[e.model_dump() for e in errors],
        )


# ── Helpers ──────────────────────────────────────────

def to_day_schedules(rows: list[WorkingHours]) -> list[DaySchedule]:
    """Registros → DaySchedule, ordenados domingo-primero."""
    schedule = [DaySchedule.model_validate(row) for row in rows]
    return sorted(schedule, key=lambda d: day_index(d.day_of_week))


def _snapshot(schedule: list[DaySchedule]) -> list[dict]:
    return [d.model_dump(mode="json") for d in schedule]


def _new_row(entity_type: EntityType, entity_id: UUID, day: DaySchedule) -> WorkingHours:
    times = {field: getattr(day, field) for field in TIME_FIELDS}
    if not day.is_working_day:
        times = dict.fromkeys(TIME_FIELDS)
    return WorkingHours(
        entity_type=entity_type,
        entity_id=entity_id,
        day_of_week=day.day_of_week,
        is_working_day=day.is_working_day,
        is_active=True,
        **times,
    )


# ── Lecturas ─────────────────────────────────────────

async def get_working_hours(
    db: AsyncSession, entity_type: EntityType, entity_id: UUID
) -> list[WorkingHours]:
    """Registros activos de la entidad, domingo-primero."""
    result = await db.execute(
        select(WorkingHours).where(
            WorkingHours.entity_type == entity_type,
            WorkingHours.entity_id == entity_id,
            WorkingHours.is_active.is_(True),
        )
    )
    rows = list(result.scalars().all())
    return sorted(rows, key=lambda r: day_index(r.day_of_week))


async def get_working_hours_or_404(
    db: AsyncSession, entity_type: EntityType, entity_id: UUID
) -> list[WorkingHours]:
    rows = await get_working_hours(db, entity_type, entity_id)
    if not rows:
        raise NotFoundException(
            "WORKING_HOURS_NOT_FOUND",
            messages.WORKING_HOURS_NOT_FOUND.format(
                entity_type=entity_type.value, entity_id=entity_id
            ),
        )
    return rows


async def get_parent_working_hours(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    cache: QueryCache | None = None,
    use_cache: bool = True,
) -> list[DaySchedule]:
    """
    Horario activo de una entidad usada como padre en validaciones.
    Lectura a través del cache por PARENT_HOURS_CACHE_TTL_SECONDS;
    `use_cache=False` lee directo de la base de datos.
    """
    cache = resolve_cache(cache)
    key = WorkingHoursCacheKeys.parent_hours(entity_type.value, entity_id)

    if use_cache:
        cached = await cache.get(key)
        if cached is not None:
            return [DaySchedule.model_validate(d) for d in cached]

    schedule = to_day_schedules(await get_working_hours(db, entity_type, entity_id))

    if use_cache:
        await cache.set(key, _snapshot(schedule), settings.PARENT_HOURS_CACHE_TTL_SECONDS)
    return schedule


# ── Escrituras ───────────────────────────────────────

async def invalidate_entity_cache(
    entity_type: EntityType, entity_id: UUID, cache: QueryCache | None = None
) -> int:
    """Elimina del cache todas las claves de la entidad."""
    cache = resolve_cache(cache)
    return await cache.invalidate_pattern(
        WorkingHoursCacheKeys.entity_pattern(entity_type.value, entity_id)
    )


async def replace_working_hours(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    schedule: list[DaySchedule],
    cache: QueryCache | None = None,
) -> list[WorkingHours]:
    """
    Reemplaza la semana completa de la entidad (delete-all + insert-all).
    Hace flush pero NO commit: el llamador decide la transacción.
    """
    previous = await get_working_hours(db, entity_type, entity_id)
    old_snapshot = _snapshot(to_day_schedules(previous))

    await db.execute(
        delete(WorkingHours).where(
            WorkingHours.entity_type == entity_type,
            WorkingHours.entity_id == entity_id,
        )
    )
    rows = [_new_row(entity_type, entity_id, day) for day in schedule]
    db.add_all(rows)
    await db.flush()

    await audit_service.log_action(
        db,
        entity="working_hours",
        entity_id=f"{entity_type.value}:{entity_id}",
        action="replace",
        old_data={"schedule": old_snapshot},
        new_data={"schedule": _snapshot(schedule)},
    )

    if settings.CACHE_INVALIDATE_ON_WRITE:
        await invalidate_entity_cache(entity_type, entity_id, cache)

    logger.info(
        f"Horario reemplazado: {entity_type.value}:{entity_id} "
        f"({len(previous)} → {len(rows)} días)"
    )
    return sorted(rows, key=lambda r: day_index(r.day_of_week))


async def create_working_hours(
    db: AsyncSession,
    data: WorkingHoursCreate,
    cache: QueryCache | None = None,
) -> list[WorkingHours]:
    """Valida la estructura y registra la semana (reemplaza la anterior si existía)."""
    ensure_valid_structure(data.schedule)
    return await replace_working_hours(
        db, data.entity_type, data.entity_id, data.schedule, cache=cache
    )


async def deactivate_working_hours(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    cache: QueryCache | None = None,
) -> int:
    """Soft-delete: marca is_active=False en todos los días de la entidad."""
    rows = await get_working_hours_or_404(db, entity_type, entity_id)

    await db.execute(
        update(WorkingHours)
        .where(
            WorkingHours.entity_type == entity_type,
            WorkingHours.entity_id == entity_id,
            WorkingHours.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    await audit_service.log_action(
        db,
        entity="working_hours",
        entity_id=f"{entity_type.value}:{entity_id}",
        action="deactivate",
    )

    if settings.CACHE_INVALIDATE_ON_WRITE:
        await invalidate_entity_cache(entity_type, entity_id, cache)

    logger.info(f"Horario desactivado: {entity_type.value}:{entity_id}")
    return len(rows)
