"""
Staff Ledger - Test Configuration

Pytest fixtures and configuration.

Every test gets its own file-backed SQLite database so that separate
sessions really contend for the write lock.
"""

import os
import tempfile
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable

# Must be set before the application settings are first loaded
os.environ.setdefault(
    "DATABASE_URL_ASYNC",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'staff_ledger_app_test.db')}",
)
os.environ.setdefault("APP_ENV", "testing")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.database import Base, build_engine, get_async_session
from app.models.employee import Employee
from app.schemas.employee import EmployeeCreate
from app.services.employee_service import EmployeeService
from app.services.ledger_service import LedgerService
from main import app


EmployeeFactory = Callable[..., Awaitable[Employee]]


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh SQLite database file for each test."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'staff_ledger.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client; each request gets its own session, as in production."""

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest.fixture
def create_employee(session_factory: async_sessionmaker) -> EmployeeFactory:
    """
    Create an employee in a short-lived session, optionally funded with a
    bonus so that it starts with a positive balance.
    """

    async def _create(
        name: str = "Ada Obi",
        position: str = "Machine Operator",
        daily_wage: Decimal = Decimal("150.00"),
        opening_bonus: Decimal = Decimal("0"),
    ) -> Employee:
        async with session_factory() as session:
            employee = await EmployeeService(session).create_employee(
                EmployeeCreate(name=name, position=position, daily_wage=daily_wage)
            )
            if opening_bonus > 0:
                await LedgerService(session).apply_transaction(
                    employee.id, "bonus", opening_bonus, description="Opening balance"
                )
            return employee

    return _create


@pytest_asyncio.fixture
async def test_employee(create_employee: EmployeeFactory) -> Employee:
    """Active employee with a zero balance."""
    return await create_employee()


@pytest.fixture
def reload_employee() -> Callable[[AsyncSession, int], Awaitable[Employee]]:
    """Read an employee row as currently committed and end the read transaction."""

    async def _reload(session: AsyncSession, employee_id: int) -> Employee:
        employee = await session.get(Employee, employee_id, populate_existing=True)
        await session.commit()
        return employee

    return _reload
