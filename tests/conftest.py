"""
Fixtures compartidas para Pytest.
Configura base de datos de test, clientes HTTP y datos base de caja.
"""

from collections.abc import AsyncGenerator
from decimal import Decimal
from uuid import uuid4

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.database import Base, get_db
from app.main import app
from app.models.cash_register import CashRegister
from app.models.owner import Owner, Pet
from app.models.product import Product
from app.models.service import Service, ServiceCategory
from app.models.user import User, UserRole

# ── Engine de test (SQLite async) ─────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
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


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provee una sesión de DB de test para preparar y verificar datos."""
    async with test_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """
    Cliente HTTP de test. Cada request usa su propia sesión con el mismo
    commit/rollback que la dependency real.
    """

    async def _get_test_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Personal ──────────────────────────────────────────


@pytest_asyncio.fixture
async def cashier(db_session: AsyncSession) -> User:
    """Recepcionista que opera la caja."""
    user = User(
        id=uuid4(),
        email="caja@test.com",
        role=UserRole.RECEPTIONIST,
        first_name="Rosa",
        last_name="Cajera",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def veterinarian(db_session: AsyncSession) -> User:
    user = User(
        id=uuid4(),
        email="vet@test.com",
        role=UserRole.VETERINARIAN,
        first_name="Luis",
        last_name="Veterinario",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


# ── Caja y catálogo ───────────────────────────────────


@pytest_asyncio.fixture
async def register(db_session: AsyncSession) -> CashRegister:
    """Caja registradora activa."""
    cash_register = CashRegister(id=uuid4(), name="Caja 1", location="Recepción")
    db_session.add(cash_register)
    await db_session.commit()
    await db_session.refresh(cash_register)
    return cash_register


@pytest_asyncio.fixture
async def product(db_session: AsyncSession) -> Product:
    """Antiparasitario con 10 unidades a 25000."""
    item = Product(
        id=uuid4(),
        name="Antiparasitario X",
        unit_price=Decimal("25000.00"),
        current_stock=10,
        min_stock=2,
    )
    db_session.add(item)
    await db_session.commit()
    await db_session.refresh(item)
    return item


@pytest_asyncio.fixture
async def service(db_session: AsyncSession) -> Service:
    item = Service(
        id=uuid4(),
        name="Consulta general",
        category=ServiceCategory.CONSULTATION,
        price=Decimal("40000.00"),
    )
    db_session.add(item)
    await db_session.commit()
    await db_session.refresh(item)
    return item


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> Owner:
    person = Owner(id=uuid4(), name="Ana Propietaria", identification_number="12345678")
    db_session.add(person)
    await db_session.commit()
    await db_session.refresh(person)
    return person


@pytest_asyncio.fixture
async def pet(db_session: AsyncSession, owner: Owner) -> Pet:
    animal = Pet(id=uuid4(), owner_id=owner.id, name="Firulais", species="Perro")
    db_session.add(animal)
    await db_session.commit()
    await db_session.refresh(animal)
    return animal


# ── Helpers ───────────────────────────────────────────


async def open_session(
    client: AsyncClient,
    register: CashRegister,
    operator: User,
    opening_balance: str = "50000.00",
) -> dict:
    """Abre una sesión vía API y retorna el JSON de respuesta."""
    response = await client.post(
        "/api/v1/cash-sessions",
        json={
            "action": "open",
            "cash_register_id": str(register.id),
            "opening_balance": opening_balance,
            "opened_by": str(operator.id),
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


async def close_session(
    client: AsyncClient, session_id: str, operator: User, final_balance: str
):
    return await client.post(
        "/api/v1/cash-sessions",
        json={
            "action": "close",
            "session_id": session_id,
            "final_balance": final_balance,
            "closed_by": str(operator.id),
        },
    )


async def create_sale(
    client: AsyncClient,
    session_id: str,
    operator: User,
    items: list[dict],
    payment_method: str = "CASH",
    owner_id: str | None = None,
):
    payload = {
        "cash_session_id": session_id,
        "items": items,
        "payment_method": payment_method,
        "sold_by": str(operator.id),
    }
    if owner_id:
        payload["owner_id"] = owner_id
    return await client.post("/api/v1/sales", json=payload)
