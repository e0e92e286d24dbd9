import os

# Keep the application engine off PostgreSQL while tests import rentbill modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from rentbill.database.core import Base
from rentbill.database.models import (
    Property, PropertyAdministrator, Rental, ElectricityBill
)


@pytest_asyncio.fixture
async def engine():
    # Use in-memory SQLite for tests, one shared connection so every session sees the same data
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def async_session(session_maker):
    async with session_maker() as session:
        yield session


async def seed_property(session_maker, rentals, bill_cost="300.00", admin_id="admin-1"):
    """
    Property with one administrator, the given rentals and a March 2025
    electricity bill. Returns plain ids so callers never touch expired ORM state.

    rentals: list of (user_id, start_date, end_date)
    """
    async with session_maker() as session:
        prop = Property(name="Casa Miraflores", address="Av. Larco 123")
        session.add(prop)
        await session.flush()

        session.add(PropertyAdministrator(property_id=prop.id, user_id=admin_id))

        rental_rows = []
        for user_id, start, end in rentals:
            rental = Rental(user_id=user_id, property_id=prop.id, start_date=start, end_date=end)
            session.add(rental)
            rental_rows.append(rental)

        bill = ElectricityBill(
            property_id=prop.id,
            period_start=date(2025, 3, 1),
            period_end=date(2025, 3, 31),
            total_kwh=Decimal("600.00"),
            total_cost=Decimal(bill_cost)
        )
        session.add(bill)
        await session.commit()

        return SimpleNamespace(
            property_id=prop.id,
            admin_id=admin_id,
            rental_ids=[r.id for r in rental_rows],
            bill_id=bill.id
        )


@pytest_asyncio.fixture
async def march_property(session_maker):
    """
    P1 with two rentals active in March 2025 (R1, R2) and one that ended in
    February (R3). Electricity bill E1 costs 300.
    """
    return await seed_property(session_maker, [
        ("user-1", date(2025, 1, 1), None),
        ("user-2", date(2025, 3, 15), date(2025, 12, 31)),
        ("user-3", date(2024, 6, 1), date(2025, 2, 28)),
    ])


@pytest_asyncio.fixture
async def client(session_maker):
    from rentbill.main import create_app
    from rentbill.middlewares.db import get_session

    app = create_app()

    async def override_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_session

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
