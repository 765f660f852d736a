"""Tests for Payments module."""

from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.audit.service import AuditService
from feeledger.core.auth.models import Actor, ActorRole
from feeledger.core.documents import UuidReceiptIssuer
from feeledger.core.exceptions import (
    ConflictError,
    InvalidAmountError,
    InvalidMethodError,
    MissingFieldError,
    NotFoundError,
)
from feeledger.modules.fees.models import FeeStatus
from feeledger.modules.fees.service import StudentFeeService
from feeledger.modules.payments.models import Payment, PaymentMethod
from feeledger.modules.payments.schemas import PaymentCollect, PaymentFilters
from feeledger.modules.payments.service import PaymentService, validate_amount

CASHIER = Actor(id="staff-9", role="STAFF", name="Cashier")


def cash(account_id: int, amount: str) -> PaymentCollect:
    return PaymentCollect(student_fee_id=account_id, amount=Decimal(amount), payment_method="CASH")


async def payment_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count(Payment.id)))).scalar() or 0


class TestValidateAmount:
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), None, "abc", Decimal("NaN")])
    def test_rejected(self, amount):
        with pytest.raises(InvalidAmountError):
            validate_amount(amount)

    @pytest.mark.parametrize("amount", [Decimal("0.005"), Decimal("10.001"), "99.999"])
    def test_more_than_two_decimal_places_rejected(self, amount):
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_amount(amount)
        assert "2 decimal places" in exc_info.value.message

    def test_trailing_zeros_accepted(self):
        assert validate_amount(Decimal("10.500")) == Decimal("10.50")
        assert validate_amount("250") == Decimal("250.00")


class TestPaymentService:
    """Tests for PaymentService.collect."""

    async def test_full_payment_after_discount(self, db_session: AsyncSession, make_account):
        account = await make_account(discount="1000")

        result = await PaymentService(db_session).collect(cash(account.id, "9000"), CASHIER)

        assert result.account.status == FeeStatus.PAID
        assert result.account.balance_amount == Decimal("0.00")
        assert result.account.paid_amount == Decimal("9000.00")
        assert result.payment.amount == Decimal("9000.00")
        assert result.payment.payment_method == PaymentMethod.CASH
        assert result.payment.recorded_by == "staff-9"
        assert result.payment.student_id == account.student_id
        assert result.payment.receipt_number.startswith("RCP-")

    async def test_partial_then_full(self, db_session: AsyncSession, make_account):
        account = await make_account(discount="1000")
        service = PaymentService(db_session)

        first = await service.collect(cash(account.id, "3000"))
        assert first.account.status == FeeStatus.PARTIAL
        assert first.account.balance_amount == Decimal("6000.00")

        second = await service.collect(cash(account.id, "6000"))
        assert second.account.status == FeeStatus.PAID
        assert second.account.balance_amount == Decimal("0.00")
        assert first.payment.receipt_number != second.payment.receipt_number

    async def test_amount_above_balance_rejected(self, db_session: AsyncSession, make_account):
        account = await make_account(discount="1000")
        account_id = account.id
        service = PaymentService(db_session)
        await service.collect(cash(account_id, "3000"))

        with pytest.raises(InvalidAmountError) as exc_info:
            await service.collect(cash(account_id, "7000"))
        assert exc_info.value.details["balance"] == "6000.00"

        unchanged = await StudentFeeService(db_session).get_account(account_id)
        assert unchanged.balance_amount == Decimal("6000.00")
        assert unchanged.paid_amount == Decimal("3000.00")
        assert unchanged.status == FeeStatus.PARTIAL
        assert await payment_count(db_session) == 1

    async def test_loaded_account_readable_after_rejection(self, db_session: AsyncSession, make_account):
        account = await make_account(discount="1000")
        account_id = account.id
        service = PaymentService(db_session)
        await service.collect(cash(account_id, "3000"))

        with pytest.raises(InvalidAmountError):
            await service.collect(cash(account_id, "7000"))

        # The rollback expired the caller's copy; refresh reloads it from the row
        await db_session.refresh(account)
        assert account.id == account_id
        assert account.paid_amount == Decimal("3000.00")
        assert account.balance_amount == Decimal("6000.00")
        assert account.status == FeeStatus.PARTIAL

    async def test_sub_cent_amount_rejected(self, db_session: AsyncSession, make_account):
        account = await make_account()
        account_id = account.id

        with pytest.raises(InvalidAmountError):
            await PaymentService(db_session).collect(cash(account_id, "0.005"))

        assert await payment_count(db_session) == 0

    async def test_upi_without_transaction_id(self, db_session: AsyncSession, make_account):
        account = await make_account(discount="1000")

        with pytest.raises(MissingFieldError):
            await PaymentService(db_session).collect(
                PaymentCollect(student_fee_id=account.id, amount=Decimal("1000"), payment_method="UPI")
            )

        assert await payment_count(db_session) == 0
        unchanged = await StudentFeeService(db_session).get_account(account.id)
        assert unchanged.paid_amount == Decimal("0.00")

    async def test_invalid_method(self, db_session: AsyncSession, make_account):
        account = await make_account()
        with pytest.raises(InvalidMethodError):
            await PaymentService(db_session).collect(
                PaymentCollect(student_fee_id=account.id, amount=Decimal("100"), payment_method="GOLD")
            )
        assert await payment_count(db_session) == 0

    async def test_non_positive_amount(self, db_session: AsyncSession, make_account):
        account = await make_account()
        with pytest.raises(InvalidAmountError):
            await PaymentService(db_session).collect(cash(account.id, "0"))

    async def test_paid_account_rejected(self, db_session: AsyncSession, make_account):
        account = await make_account()
        service = PaymentService(db_session)
        await service.collect(cash(account.id, "10000"))

        with pytest.raises(ConflictError) as exc_info:
            await service.collect(cash(account.id, "1"))
        assert "already fully paid" in exc_info.value.message

    async def test_unknown_account(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await PaymentService(db_session).collect(cash(999, "100"))

    async def test_cheque_fields_stored(self, db_session: AsyncSession, make_account):
        account = await make_account()

        result = await PaymentService(db_session).collect(
            PaymentCollect(
                student_fee_id=account.id,
                amount=Decimal("2500"),
                payment_method="cheque",
                reference_number="CHQ-445566",
                bank_name="State Bank",
                branch_name="MG Road",
                transaction_id="ignored",
                remarks="Term 1",
            )
        )

        assert result.payment.payment_method == PaymentMethod.CHEQUE
        assert result.payment.reference_number == "CHQ-445566"
        assert result.payment.bank_name == "State Bank"
        assert result.payment.transaction_id is None
        assert result.payment.remarks == "Term 1"

    async def test_sequential_receipts(self, db_session: AsyncSession, make_account):
        account = await make_account()
        service = PaymentService(db_session)

        first = await service.collect(cash(account.id, "100"))
        second = await service.collect(cash(account.id, "100"))

        year = first.payment.paid_at.year
        assert first.payment.receipt_number == f"RCP-{year}-000001"
        assert second.payment.receipt_number == f"RCP-{year}-000002"

    async def test_uuid_receipts(self, db_session: AsyncSession, make_account):
        account = await make_account()
        service = PaymentService(db_session, receipt_issuer=UuidReceiptIssuer())

        numbers = {(await service.collect(cash(account.id, "100"))).payment.receipt_number for _ in range(5)}
        assert len(numbers) == 5

    async def test_paid_amount_matches_payments(self, db_session: AsyncSession, make_account):
        account = await make_account(discount="1000", scholarship="500")
        service = PaymentService(db_session)
        for amount in ["1200.50", "3000", "299.50"]:
            await service.collect(cash(account.id, amount))

        account = await StudentFeeService(db_session).get_account(account.id)
        payments, total = await service.list_payments(PaymentFilters(student_fee_id=account.id))
        assert total == 3
        assert account.paid_amount == sum(p.amount for p in payments)
        assert account.final_amount == Decimal("8500.00")
        assert account.balance_amount == account.final_amount - account.paid_amount

    async def test_collection_is_audited(self, db_session: AsyncSession, make_account):
        account = await make_account()
        result = await PaymentService(db_session).collect(cash(account.id, "500"), CASHIER)

        logs = await AuditService(db_session).list_for_entity("Payment", result.payment.id)
        assert len(logs) == 1
        assert logs[0].action == "payment.collect"
        assert logs[0].actor_id == "staff-9"
        assert logs[0].entity_identifier == result.payment.receipt_number
        assert logs[0].new_values["status"] == "PARTIAL"
        assert "₹500.00" in logs[0].comment

    async def test_lookup_by_receipt(self, db_session: AsyncSession, make_account):
        account = await make_account()
        service = PaymentService(db_session)
        result = await service.collect(cash(account.id, "500"))

        found = await service.get_payment_by_receipt(result.payment.receipt_number)
        assert found.id == result.payment.id

        with pytest.raises(NotFoundError):
            await service.get_payment_by_receipt("RCP-1999-000001")


class TestPaymentEndpoints:
    """Tests for payment API endpoints."""

    async def test_collect(self, client: AsyncClient, auth_headers, make_account):
        account = await make_account(discount="1000")

        response = await client.post(
            "/api/v1/payments/collect",
            json={
                "student_fee_id": account.id,
                "amount": "3000",
                "payment_method": "UPI",
                "transaction_id": "UPI-1001",
            },
            headers=auth_headers(ActorRole.STAFF),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["payment"]["transaction_id"] == "UPI-1001"
        assert Decimal(body["data"]["account"]["balance_amount"]) == Decimal("6000")
        assert body["data"]["account"]["status"] == "PARTIAL"

        receipt = body["data"]["payment"]["receipt_number"]
        response = await client.get(f"/api/v1/payments/receipts/{receipt}", headers=auth_headers())
        assert response.status_code == 200
        assert response.json()["data"]["id"] == body["data"]["payment"]["id"]

    async def test_collect_missing_transaction_id(self, client: AsyncClient, auth_headers, make_account):
        account = await make_account()

        response = await client.post(
            "/api/v1/payments/collect",
            json={"student_fee_id": account.id, "amount": "100", "payment_method": "CARD"},
            headers=auth_headers(ActorRole.STAFF),
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "transaction_id"

    async def test_collect_invalid_method(self, client: AsyncClient, auth_headers, make_account):
        account = await make_account()

        response = await client.post(
            "/api/v1/payments/collect",
            json={"student_fee_id": account.id, "amount": "100", "payment_method": "CRYPTO"},
            headers=auth_headers(ActorRole.STAFF),
        )

        assert response.status_code == 422
        assert response.json()["message"] == "Invalid payment method: CRYPTO"

    async def test_collect_on_paid_account(self, client: AsyncClient, auth_headers, make_account):
        account = await make_account(discount="10000")

        response = await client.post(
            "/api/v1/payments/collect",
            json={"student_fee_id": account.id, "amount": "100", "payment_method": "CASH"},
            headers=auth_headers(ActorRole.STAFF),
        )

        assert response.status_code == 409

    async def test_students_cannot_collect(self, client: AsyncClient, auth_headers, make_account):
        account = await make_account()

        response = await client.post(
            "/api/v1/payments/collect",
            json={"student_fee_id": account.id, "amount": "100", "payment_method": "CASH"},
            headers=auth_headers(ActorRole.STUDENT),
        )

        assert response.status_code == 403

    async def test_list_payments(self, client: AsyncClient, auth_headers, db_session: AsyncSession, make_account):
        account = await make_account()
        service = PaymentService(db_session)
        await service.collect(cash(account.id, "100"))
        await service.collect(
            PaymentCollect(
                student_fee_id=account.id,
                amount=Decimal("200"),
                payment_method="ONLINE",
                transaction_id="PG-77",
            )
        )

        response = await client.get(
            "/api/v1/payments", params={"student_fee_id": account.id}, headers=auth_headers()
        )
        assert response.status_code == 200
        assert response.json()["data"]["total"] == 2

        response = await client.get(
            "/api/v1/payments", params={"payment_method": "ONLINE"}, headers=auth_headers()
        )
        items = response.json()["data"]["items"]
        assert [i["transaction_id"] for i in items] == ["PG-77"]

    @pytest.mark.parametrize("role", [ActorRole.STUDENT, ActorRole.PARENT])
    async def test_payment_reads_need_staff_role(
        self, client: AsyncClient, auth_headers, db_session: AsyncSession, make_account, role
    ):
        account = await make_account()
        result = await PaymentService(db_session).collect(cash(account.id, "100"))
        headers = auth_headers(role, actor_id="parent-3", name=None)

        for path in (
            "/api/v1/payments",
            f"/api/v1/payments/{result.payment.id}",
            f"/api/v1/payments/receipts/{result.payment.receipt_number}",
            "/api/v1/student-fees",
            f"/api/v1/student-fees/{account.id}",
        ):
            response = await client.get(path, headers=headers)
            assert response.status_code == 403, path
