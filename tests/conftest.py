"""
Pytest configuration and shared test fixtures.

Tests run against an in-memory SQLite database through aiosqlite. A single
connection is shared through StaticPool so the schema, the seeded shipping
rates and the catalog fixtures are visible to every session opened by the
tests and by the application under test.
"""

from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from purrfect_glow.core.rate_limit import limiter
from purrfect_glow.database.connection import get_db
from purrfect_glow.database.models import Base, Order, OrderItem, Product
from purrfect_glow.database.seed import seed_shipping_rates
from purrfect_glow.main import app
from purrfect_glow.services.orders.handoff import HandoffRenderer
from purrfect_glow.services.orders.service import CustomerDetails

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_WHATSAPP_NUMBER = "51959619405"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an in-memory database with every table.

    Yields:
        AsyncEngine: Engine bound to a single shared connection
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Session over a database seeded with the default shipping rates.

    Yields:
        AsyncSession: Session used by the test body
    """
    async with session_factory() as session:
        await seed_shipping_rates(session)
        yield session


@pytest.fixture
async def catalog(db_session: AsyncSession) -> dict[str, Product]:
    """
    Products used across order and inventory tests.

    Returns:
        dict: ``serum`` at 85.00, ``cream`` at 130.00 and an unavailable
        ``retired`` product
    """
    products = {
        "serum": Product(
            name="Sérum Vitamina C",
            price=Decimal("85.00"),
            is_available=True,
            sizes=[],
        ),
        "cream": Product(
            name="Crema Hidratante",
            price=Decimal("130.00"),
            is_available=True,
            sizes=[],
        ),
        "retired": Product(
            name="Tónico Descontinuado",
            price=Decimal("40.00"),
            is_available=False,
            sizes=[],
        ),
    }
    db_session.add_all(products.values())
    await db_session.commit()
    return products


@pytest.fixture
def customer() -> CustomerDetails:
    return CustomerDetails(
        full_name="Ana Torres",
        dni="12345678",
        phone="987654321",
        address="Av. Larco 123, Miraflores",
        department="Lima",
        province="Lima",
    )


@pytest.fixture
def handoff_renderer() -> HandoffRenderer:
    return HandoffRenderer(whatsapp_number=TEST_WHATSAPP_NUMBER)


@pytest.fixture
def row_counts(db_session: AsyncSession):
    """
    Count persisted orders and order items.

    Returns:
        Coroutine function returning an ``(orders, items)`` tuple
    """

    async def _count() -> tuple[int, int]:
        orders = await db_session.scalar(select(func.count()).select_from(Order))
        items = await db_session.scalar(select(func.count()).select_from(OrderItem))
        return orders, items

    return _count


@pytest.fixture
async def api_client(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: dict[str, Product],
) -> AsyncGenerator[AsyncClient, None]:
    """
    Asynchronous client for the application, wired to the test database.

    Rate limiting is disabled so tests can place any number of orders.

    Yields:
        AsyncClient: Client sending requests through the ASGI app
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
    limiter.enabled = True
