"""
Unidad de trabajo sobre una AsyncSession: un único commit al salir sin
errores; ante cualquier excepción, rollback y se relanza.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AppException

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Uso:

        async with UnitOfWork(db) as uow:
            uow.session.add(...)

    Todas las escrituras dentro del bloque se confirman o se descartan juntas.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.committed = False

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            await self.session.commit()
            self.committed = True
            return False
        if isinstance(exc, AppException):
            # Rechazo esperado (400/404/422): sin traceback
            logger.warning(f"Unidad de trabajo descartada, rollback: {exc.code}")
        else:
            logger.error(
                f"Unidad de trabajo abortada, rollback: {exc_type.__name__}: {exc}",
                exc_info=(exc_type, exc, tb),
            )
        await self.session.rollback()
        return False
