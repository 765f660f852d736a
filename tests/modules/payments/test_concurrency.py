"""Concurrent collections against one fee account."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from feeledger.core.database.base import Base
from feeledger.core.exceptions import ConflictError, InvalidAmountError, ValidationError
from feeledger.modules.fee_structures.models import FeeComponent, FeeStructure
from feeledger.modules.fees.models import FeeStatus, ReductionType
from feeledger.modules.fees.schemas import DiscountInput, FeeAssign, ReductionsAdd
from feeledger.modules.fees.service import StudentFeeService
from feeledger.modules.payments.locks import AccountLocks, account_locks
from feeledger.modules.payments.models import Payment
from feeledger.modules.payments.schemas import PaymentCollect
from feeledger.modules.payments.service import PaymentService
from feeledger.modules.students.models import Student


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed database so that each session gets its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def _open_account(factory) -> int:
    async with factory() as session:
        student = Student(admission_number="ADM-100", full_name="Kabir Rao")
        structure = FeeStructure(name="Grade 8", academic_year="2026-27")
        structure.components = [
            FeeComponent(name="Tuition", fee_type="TUITION", amount=Decimal("10000"), frequency="ANNUAL")
        ]
        session.add_all([student, structure])
        await session.flush()
        account = await StudentFeeService(session).assign_structure(
            FeeAssign(
                student_id=student.id,
                fee_structure_id=structure.id,
                discounts=[
                    DiscountInput(name="Sibling", value_type=ReductionType.FIXED, value=Decimal("1000"))
                ],
            )
        )
        return account.id


async def _collect(factory, account_id: int, amount: str):
    async with factory() as session:
        return await PaymentService(session).collect(
            PaymentCollect(student_fee_id=account_id, amount=Decimal(amount), payment_method="CASH")
        )


async def _add_discount(factory, account_id: int, amount: str):
    async with factory() as session:
        return await StudentFeeService(session).add_reductions(
            account_id,
            ReductionsAdd(
                discounts=[
                    DiscountInput(name="Waiver", value_type=ReductionType.FIXED, value=Decimal(amount))
                ]
            ),
        )


class TestConcurrentCollection:
    async def test_only_one_full_payment_succeeds(self, session_factory):
        account_id = await _open_account(session_factory)

        results = await asyncio.gather(
            _collect(session_factory, account_id, "9000"),
            _collect(session_factory, account_id, "9000"),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, BaseException)]
        failed = [r for r in results if isinstance(r, BaseException)]
        assert len(succeeded) == 1
        assert len(failed) == 1
        assert isinstance(failed[0], (ConflictError, InvalidAmountError))

        async with session_factory() as session:
            account = await StudentFeeService(session).get_account(account_id)
            assert account.status == FeeStatus.PAID
            assert account.paid_amount == Decimal("9000.00")
            assert account.balance_amount == Decimal("0.00")
            count = (await session.execute(select(func.count(Payment.id)))).scalar()
            assert count == 1

        assert account_locks.active() == 0

    async def test_concurrent_partials_never_overpay(self, session_factory):
        account_id = await _open_account(session_factory)

        results = await asyncio.gather(
            *(_collect(session_factory, account_id, "2000") for _ in range(6)),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, BaseException)]
        assert len(succeeded) == 4
        assert all(isinstance(r, InvalidAmountError) for r in results if isinstance(r, BaseException))
        receipts = {r.payment.receipt_number for r in succeeded}
        assert len(receipts) == 4

        async with session_factory() as session:
            account = await StudentFeeService(session).get_account(account_id)
            assert account.paid_amount == Decimal("8000.00")
            assert account.balance_amount == Decimal("1000.00")
            assert account.status == FeeStatus.PARTIAL

    async def test_reduction_racing_a_collection(self, session_factory):
        account_id = await _open_account(session_factory)

        results = await asyncio.gather(
            _collect(session_factory, account_id, "9000"),
            _add_discount(session_factory, account_id, "1000"),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, BaseException)]
        failed = [r for r in results if isinstance(r, BaseException)]
        assert len(succeeded) == 1
        assert isinstance(failed[0], (ConflictError, InvalidAmountError, ValidationError))

        async with session_factory() as session:
            account = await StudentFeeService(session).get_account(account_id)
            assert account.final_amount >= account.paid_amount
            assert account.balance_amount == account.final_amount - account.paid_amount

        assert account_locks.active() == 0


class TestAccountLocks:
    async def test_same_account_is_serialized(self):
        locks = AccountLocks()
        order: list[str] = []

        async def worker(name: str):
            async with locks.hold(1):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert order in (["a-in", "a-out", "b-in", "b-out"], ["b-in", "b-out", "a-in", "a-out"])
        assert locks.active() == 0

    async def test_different_accounts_overlap(self):
        locks = AccountLocks()
        inside = asyncio.Event()

        async def first():
            async with locks.hold(1):
                inside.set()
                await asyncio.sleep(0.01)

        async def second():
            await inside.wait()
            async with locks.hold(2):
                return locks.active()

        _, active = await asyncio.gather(first(), second())
        assert active == 2

    async def test_released_on_error(self):
        locks = AccountLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold(7):
                raise RuntimeError("boom")
        assert locks.active() == 0
