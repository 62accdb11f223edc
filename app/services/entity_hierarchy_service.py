"""
Jerarquía de entidades: user → clinic → complex → organization.

Resuelve la entidad superior de cualquier entidad y sus datos básicos
(nombre) para validar horarios y armar mensajes.
"""

import logging
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core import messages
from app.core.cache import QueryCache, WorkingHoursCacheKeys, resolve_cache
from app.core.exceptions import NotFoundException
from app.core.messages import BilingualMessage
from app.database import Base
from app.models.clinic import Clinic
from app.models.complex import Complex
from app.models.organization import Organization
from app.models.user import User
from app.models.working_hours import EntityType

logger = logging.getLogger(__name__)
settings = get_settings()


class ParentInfo(BaseModel):
    entity_type: EntityType
    entity_id: UUID


class ParentResolution(BaseModel):
    """
    Resultado de buscar la entidad superior.
    `parent=None, error=None` es "no tiene padre"; `error` indica que la
    búsqueda falló (entidad inexistente o error de base de datos).
    """
    parent: ParentInfo | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


# ── Tablas por tipo de entidad ───────────────────────
# Cada tabla debe cubrir todos los miembros de EntityType.

ENTITY_MODELS: dict[EntityType, type[Base]] = {
    EntityType.ORGANIZATION: Organization,
    EntityType.COMPLEX: Complex,
    EntityType.CLINIC: Clinic,
    EntityType.USER: User,
}

# (columna con el id del padre, tipo del padre); None = raíz
PARENT_EDGES: dict[EntityType, tuple[str, EntityType] | None] = {
    EntityType.ORGANIZATION: None,
    EntityType.COMPLEX: ("organization_id", EntityType.ORGANIZATION),
    EntityType.CLINIC: ("complex_id", EntityType.COMPLEX),
    EntityType.USER: ("clinic_id", EntityType.CLINIC),
}

HIERARCHY_DEPTH: dict[EntityType, int] = {
    EntityType.ORGANIZATION: 0,
    EntityType.COMPLEX: 1,
    EntityType.CLINIC: 2,
    EntityType.USER: 3,
}

NOT_FOUND_ERRORS: dict[EntityType, tuple[str, BilingualMessage]] = {
    EntityType.ORGANIZATION: ("ORGANIZATION_NOT_FOUND", messages.ORGANIZATION_NOT_FOUND),
    EntityType.COMPLEX: ("COMPLEX_NOT_FOUND", messages.COMPLEX_NOT_FOUND),
    EntityType.CLINIC: ("CLINIC_NOT_FOUND", messages.CLINIC_NOT_FOUND),
    EntityType.USER: ("USER_NOT_FOUND", messages.USER_NOT_FOUND),
}


def _display_name(entity_type: EntityType, entity: Any) -> str:
    if entity_type == EntityType.USER:
        return entity.full_name
    return entity.name


# ── Entidad superior ─────────────────────────────────

async def resolve_parent(
    db: AsyncSession, entity_type: EntityType, entity_id: UUID
) -> ParentResolution:
    """Busca la entidad superior distinguiendo "sin padre" de "búsqueda fallida"."""
    edge = PARENT_EDGES[entity_type]
    if edge is None:
        return ParentResolution()

    parent_field, parent_type = edge
    model = ENTITY_MODELS[entity_type]
    try:
        result = await db.execute(
            select(getattr(model, parent_field)).where(model.id == entity_id)
        )
    except SQLAlchemyError as exc:
        return ParentResolution(error=f"Error de base de datos: {exc}")

    row = result.first()
    if row is None:
        return ParentResolution(error=f"{entity_type.value} {entity_id} no existe")
    if row[0] is None:
        return ParentResolution()
    return ParentResolution(parent=ParentInfo(entity_type=parent_type, entity_id=row[0]))


async def get_parent_entity(
    db: AsyncSession, entity_type: EntityType, entity_id: UUID
) -> ParentInfo | None:
    """
    Entidad superior o None. Una búsqueda fallida también devuelve None
    (fail-open): no poder determinar el padre nunca bloquea una
    actualización de horario.
    """
    resolution = await resolve_parent(db, entity_type, entity_id)
    if resolution.failed:
        logger.warning(
            f"No se pudo resolver la entidad superior de {entity_type.value}:{entity_id} "
            f"({resolution.error}); se omite la validación jerárquica"
        )
    return resolution.parent


# ── Datos de entidad ─────────────────────────────────

async def get_entity_details(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    cache: QueryCache | None = None,
) -> dict:
    """
    {entity_type, entity_id, name} de una entidad existente.
    Cacheado ENTITY_DETAILS_CACHE_TTL_SECONDS; lanza NotFoundException si no existe.
    """
    cache = resolve_cache(cache)
    key = WorkingHoursCacheKeys.entity_details(entity_type.value, entity_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    entity = await db.get(ENTITY_MODELS[entity_type], entity_id)
    if entity is None:
        code, message = NOT_FOUND_ERRORS[entity_type]
        raise NotFoundException(code, message)

    details = {
        "entity_type": entity_type.value,
        "entity_id": str(entity_id),
        "name": _display_name(entity_type, entity),
    }
    await cache.set(key, details, settings.ENTITY_DETAILS_CACHE_TTL_SECONDS)
    return details


async def get_entity_name(
    db: AsyncSession,
    entity_type: EntityType,
    entity_id: UUID,
    cache: QueryCache | None = None,
) -> str:
    """Nombre visible de la entidad; si no existe, "<Tipo> <id>"."""
    try:
        details = await get_entity_details(db, entity_type, entity_id, cache=cache)
    except NotFoundException:
        return f"{entity_type.value.capitalize()} {entity_id}"
    return details["name"]
