from collections.abc import AsyncGenerator, Callable
from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from feeledger.core.auth.jwt import create_access_token
from feeledger.core.auth.models import ActorRole
from feeledger.core.database.base import Base
from feeledger.core.database import get_db
from feeledger.main import app
from feeledger.modules.fee_structures.models import FeeComponent, FeeStructure
from feeledger.modules.fees.models import ReductionType, StudentFee
from feeledger.modules.fees.schemas import DiscountInput, FeeAssign, ScholarshipInput
from feeledger.modules.fees.service import StudentFeeService
from feeledger.modules.students.models import Student

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header for a caller with the given role."""

    def _headers(role: ActorRole = ActorRole.SCHOOL_ADMIN, actor_id: str = "admin-1", name: str | None = "Admin") -> dict[str, str]:
        token = create_access_token(actor_id, role.value, name=name)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_student(db_session: AsyncSession):
    """Insert a student (flushed, not committed)."""

    async def _make(
        admission_number: str = "ADM-001",
        full_name: str = "Asha Verma",
        academic_unit: str | None = "Grade 5 - A",
    ) -> Student:
        student = Student(
            admission_number=admission_number, full_name=full_name, academic_unit=academic_unit
        )
        db_session.add(student)
        await db_session.flush()
        return student

    return _make


@pytest.fixture
def make_structure(db_session: AsyncSession):
    """Insert an unlocked structure whose components carry the given amounts."""

    async def _make(
        amounts: list[str] | None = None,
        name: str = "Grade 5 Annual Fees",
        academic_year: str = "2026-27",
    ) -> FeeStructure:
        structure = FeeStructure(name=name, academic_year=academic_year, academic_unit="Grade 5")
        structure.components = [
            FeeComponent(
                name=f"Component {i + 1}",
                fee_type="TUITION",
                amount=Decimal(amount),
                frequency="ANNUAL",
                display_order=i,
            )
            for i, amount in enumerate(amounts or ["10000.00"])
        ]
        db_session.add(structure)
        await db_session.flush()
        return structure

    return _make


@pytest.fixture
def make_account(db_session: AsyncSession, make_student, make_structure):
    """Assign a structure to a new student; optional fixed discount/scholarship."""

    async def _make(
        total: str = "10000.00",
        discount: str | None = None,
        scholarship: str | None = None,
        admission_number: str = "ADM-001",
        due_date: date | None = None,
        academic_unit: str | None = "Grade 5 - A",
    ) -> StudentFee:
        student = await make_student(admission_number=admission_number, academic_unit=academic_unit)
        structure = await make_structure([total], name=f"Fees {admission_number}")
        fixed = [] if discount is None else [
            DiscountInput(name="Sibling discount", value_type=ReductionType.FIXED, value=Decimal(discount))
        ]
        grants = [] if scholarship is None else [
            ScholarshipInput(name="Merit", value_type=ReductionType.FIXED, value=Decimal(scholarship))
        ]
        return await StudentFeeService(db_session).assign_structure(
            FeeAssign(
                student_id=student.id,
                fee_structure_id=structure.id,
                discounts=fixed,
                scholarships=grants,
                due_date=due_date,
            )
        )

    return _make
