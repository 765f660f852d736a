#!/usr/bin/env python3
"""
Seed the database with demo fee data.

Creates a handful of students, one fee structure per unit, fee accounts with
discounts/scholarships and a few collected payments, so the ledger endpoints
return something meaningful.

Usage:
    python scripts/seed_demo_data.py --dry-run   # nothing is written
    python scripts/seed_demo_data.py --confirm   # write to the database

Requires: migrations applied (alembic upgrade head), database reachable.
"""

import asyncio
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.config import settings
from feeledger.core.database.session import async_session
from feeledger.core.documents.number_generator import DocumentNumberGenerator
from feeledger.modules.fee_structures.models import FeeComponent, FeeFrequency, FeeStructure, FeeType
from feeledger.modules.fees.ledger import ReductionRequest, apply_reductions, recompute
from feeledger.modules.fees.models import FeeDiscount, FeeScholarship, ReductionType, StudentFee
from feeledger.modules.payments.models import Payment, PaymentMethod
from feeledger.modules.students.models import Student

ACADEMIC_YEAR = "2026-27"
DUE_DATE = date(2026, 7, 31)

UNITS = {
    "Grade 1": [
        ("Tuition", FeeType.TUITION, "24000.00", FeeFrequency.ANNUAL),
        ("Library", FeeType.LIBRARY, "1500.00", FeeFrequency.ANNUAL),
        ("Admission", FeeType.ADMISSION, "5000.00", FeeFrequency.ONE_TIME),
    ],
    "Grade 5": [
        ("Tuition", FeeType.TUITION, "32000.00", FeeFrequency.ANNUAL),
        ("Laboratory", FeeType.LABORATORY, "3000.00", FeeFrequency.ANNUAL),
        ("Transport", FeeType.TRANSPORT, "9000.00", FeeFrequency.ANNUAL),
    ],
}

# admission number, name, unit, discount %, scholarship (fixed), payments
STUDENTS = [
    ("ADM-2026-001", "Aarav Sharma", "Grade 1", None, None, [("CASH", "10000.00")]),
    ("ADM-2026-002", "Diya Patel", "Grade 1", "10", None, [("UPI", "27450.00")]),
    ("ADM-2026-003", "Kabir Nair", "Grade 5", None, "8000.00", [("CHEQUE", "15000.00")]),
    ("ADM-2026-004", "Meera Iyer", "Grade 5", "5", None, []),
    ("ADM-2026-005", "Rohan Das", "Grade 5", None, None, [("CARD", "20000.00"), ("CASH", "4000.00")]),
]


async def seed_structures(session: AsyncSession) -> dict[str, FeeStructure]:
    result = await session.execute(select(FeeStructure).where(FeeStructure.academic_year == ACADEMIC_YEAR))
    existing = {s.academic_unit: s for s in result.scalars().all()}
    if existing:
        print("  Fee structures already exist, skip.")
        return existing

    structures = {}
    for unit, components in UNITS.items():
        structure = FeeStructure(
            name=f"{unit} Annual Fees {ACADEMIC_YEAR}",
            academic_year=ACADEMIC_YEAR,
            academic_unit=unit,
            is_locked=True,
        )
        structure.components = [
            FeeComponent(
                name=name,
                fee_type=fee_type.value,
                amount=Decimal(amount),
                frequency=frequency.value,
                due_date=DUE_DATE,
                display_order=index,
            )
            for index, (name, fee_type, amount, frequency) in enumerate(components)
        ]
        session.add(structure)
        structures[unit] = structure
    await session.flush()
    print(f"  Created {len(structures)} fee structures.")
    return structures


async def seed_accounts(session: AsyncSession, structures: dict[str, FeeStructure]) -> None:
    result = await session.execute(select(Student.id).limit(1))
    if result.scalar_one_or_none():
        print("  Students already exist, skip.")
        return

    receipts = DocumentNumberGenerator(session)
    paid_at = datetime(2026, 6, 15, 10, 0, tzinfo=timezone.utc)

    for admission_number, name, unit, discount, scholarship, payments in STUDENTS:
        student = Student(admission_number=admission_number, full_name=name, academic_unit=unit)
        session.add(student)
        await session.flush()

        structure = structures[unit]
        total = sum((c.amount for c in structure.components), Decimal("0"))
        discounts = [ReductionRequest(ReductionType.PERCENTAGE, Decimal(discount))] if discount else []
        grants = [ReductionRequest(ReductionType.FIXED, Decimal(scholarship))] if scholarship else []
        reductions = apply_reductions(total, discounts, grants)
        paid = sum((Decimal(amount) for _, amount in payments), Decimal("0"))
        figures = recompute(total, reductions.discount_amount, reductions.scholarship_amount, paid)

        account = StudentFee(
            student_id=student.id,
            fee_structure_id=structure.id,
            academic_year=ACADEMIC_YEAR,
            total_amount=total,
            discount_amount=reductions.discount_amount,
            scholarship_amount=reductions.scholarship_amount,
            final_amount=figures.final_amount,
            paid_amount=paid,
            balance_amount=figures.balance_amount,
            status=figures.status.value,
            due_date=DUE_DATE,
            discounts=[
                FeeDiscount(
                    name="Early payment",
                    value_type=ReductionType.PERCENTAGE.value,
                    value=Decimal(discount),
                    amount=amount,
                )
                for amount in reductions.discount_amounts
            ],
            scholarships=[
                FeeScholarship(
                    name="Merit scholarship",
                    value_type=ReductionType.FIXED.value,
                    value=Decimal(scholarship),
                    amount=amount,
                    provider="Alumni Trust",
                )
                for amount in reductions.scholarship_amounts
            ],
        )
        session.add(account)
        await session.flush()

        for method, amount in payments:
            method = PaymentMethod(method)
            session.add(
                Payment(
                    receipt_number=await receipts.generate(settings.receipt_prefix, paid_at.year),
                    student_fee_id=account.id,
                    student_id=student.id,
                    amount=Decimal(amount),
                    payment_method=method.value,
                    transaction_id=f"TXN-{admission_number}" if method in (PaymentMethod.UPI, PaymentMethod.CARD) else None,
                    reference_number=f"CHQ-{admission_number}" if method == PaymentMethod.CHEQUE else None,
                    paid_at=paid_at,
                )
            )
        await session.flush()

    print(f"  Created {len(STUDENTS)} students with fee accounts and payments.")


async def run_seed(session: AsyncSession, dry_run: bool) -> None:
    print("Fee structures...")
    structures = await seed_structures(session)
    print("Students, accounts, payments...")
    await seed_accounts(session, structures)

    if dry_run:
        await session.rollback()
        print("\n[DRY-RUN] Rolled back, no data written.")
    else:
        await session.commit()
        print("\nSeed completed successfully.")


async def main() -> None:
    import argparse
    parser = argparse.ArgumentParser(description="Seed database with demo fee data")
    parser.add_argument("--dry-run", action="store_true", help="Do not commit")
    parser.add_argument("--confirm", action="store_true", help="Commit changes")
    args = parser.parse_args()
    if not args.dry_run and not args.confirm:
        print("Use --dry-run or --confirm")
        sys.exit(1)

    print("Database:", settings.database_url.split("@")[-1] if "@" in settings.database_url else "?")
    print("Mode:", "DRY-RUN" if args.dry_run else "CONFIRM")
    async with async_session() as session:
        await run_seed(session, dry_run=args.dry_run)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
