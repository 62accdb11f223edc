"""
Configuración de base de datos con SQLAlchemy 2.0 async.
"""

from typing import AsyncGenerator

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

settings = get_settings()

# ── Engine async ─────────────────────────────────────
_engine_kwargs: dict = {"echo": settings.DEBUG, "pool_pre_ping": True}
if settings.DATABASE_URL.startswith("postgresql"):
    _engine_kwargs.update(pool_size=20, max_overflow=10)

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

# ── Session factory ──────────────────────────────────
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# JSONB en PostgreSQL, JSON genérico en SQLite (tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


# ── Base declarativa ─────────────────────────────────
class Base(DeclarativeBase):
    pass


# ── Dependency: sesión de DB ─────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency de FastAPI que provee una sesión de base de datos.
    Hace commit al terminar la request o rollback si hubo error.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
