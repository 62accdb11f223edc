"""
Fixtures compartidas para Pytest.
Configura base de datos de test, cache limpio, clientes HTTP y una
jerarquía organización → complejo → clínica → médico con un paciente.
"""

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings
from app.core.cache import InMemoryQueryCache, get_query_cache
from app.database import Base, get_db
from app.main import app
from app.models.clinic import Clinic
from app.models.complex import Complex
from app.models.organization import Organization
from app.models.patient import Patient
from app.models.user import User, UserRole

settings = get_settings()

# ── Engine de test (SQLite async o PostgreSQL de test) ─
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Crea y destruye las tablas para cada test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(autouse=True)
async def reset_query_cache():
    """El cache de proceso no debe filtrar datos entre tests."""
    get_query_cache.cache_clear()
    yield
    get_query_cache.cache_clear()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def query_cache() -> InMemoryQueryCache:
    """Cache aislado para inyectar en los servicios."""
    return InMemoryQueryCache()


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, query_cache: InMemoryQueryCache
) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test que usa la DB y el cache de test."""

    async def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_query_cache] = lambda: query_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Jerarquía de test ────────────────────────────────

@pytest_asyncio.fixture
async def test_organization(db_session: AsyncSession) -> Organization:
    organization = Organization(id=uuid4(), name="Grupo Salud Test")
    db_session.add(organization)
    await db_session.commit()
    await db_session.refresh(organization)
    return organization


@pytest_asyncio.fixture
async def test_complex(db_session: AsyncSession, test_organization: Organization) -> Complex:
    complex_ = Complex(
        id=uuid4(), organization_id=test_organization.id, name="Complejo Test"
    )
    db_session.add(complex_)
    await db_session.commit()
    await db_session.refresh(complex_)
    return complex_


@pytest_asyncio.fixture
async def test_clinic(db_session: AsyncSession, test_complex: Complex) -> Clinic:
    """Crea una clínica de test dentro del complejo."""
    clinic = Clinic(
        id=uuid4(),
        organization_id=test_complex.organization_id,
        complex_id=test_complex.id,
        name="Clínica Test",
    )
    db_session.add(clinic)
    await db_session.commit()
    await db_session.refresh(clinic)
    return clinic


@pytest_asyncio.fixture
async def test_doctor(db_session: AsyncSession, test_clinic: Clinic) -> User:
    """Crea un médico de test que atiende en la clínica."""
    user = User(
        id=uuid4(),
        clinic_id=test_clinic.id,
        complex_id=test_clinic.complex_id,
        email="doctor@test.com",
        role=UserRole.DOCTOR,
        first_name="Ana",
        last_name="Quispe",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_patient(db_session: AsyncSession, test_clinic: Clinic) -> Patient:
    patient = Patient(
        id=uuid4(), clinic_id=test_clinic.id, first_name="Luis", last_name="Rojas"
    )
    db_session.add(patient)
    await db_session.commit()
    await db_session.refresh(patient)
    return patient
