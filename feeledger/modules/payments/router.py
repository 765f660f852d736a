"""API endpoints for Payments module."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.auth.dependencies import CollectorActor
from feeledger.core.database.session import get_db
from feeledger.modules.fees.schemas import StudentFeeResponse
from feeledger.modules.payments.models import PaymentMethod
from feeledger.modules.payments.schemas import (
    CollectionResponse,
    PaymentCollect,
    PaymentFilters,
    PaymentResponse,
)
from feeledger.modules.payments.service import PaymentService
from feeledger.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post(
    "/collect",
    response_model=ApiResponse[CollectionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def collect_payment(
    data: PaymentCollect,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Collect a payment against a student fee account and issue a receipt."""
    service = PaymentService(db)
    result = await service.collect(data, current_actor)
    return ApiResponse(
        data=CollectionResponse(
            payment=PaymentResponse.model_validate(result.payment),
            account=StudentFeeResponse.from_account(result.account),
        ),
        message=f"Payment collected, receipt {result.payment.receipt_number}",
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[PaymentResponse]],
)
async def list_payments(
    current_actor: CollectorActor,
    student_id: int | None = Query(None),
    student_fee_id: int | None = Query(None),
    payment_method: PaymentMethod | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List payments with optional filters."""
    service = PaymentService(db)
    payments, total = await service.list_payments(
        PaymentFilters(
            student_id=student_id,
            student_fee_id=student_fee_id,
            payment_method=payment_method,
            date_from=date_from,
            date_to=date_to,
            page=page,
            limit=limit,
        )
    )
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[PaymentResponse.model_validate(p) for p in payments],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/receipts/{receipt_number}",
    response_model=ApiResponse[PaymentResponse],
)
async def get_payment_by_receipt(
    receipt_number: str,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Look up a payment by receipt number."""
    service = PaymentService(db)
    payment = await service.get_payment_by_receipt(receipt_number)
    return ApiResponse(data=PaymentResponse.model_validate(payment))


@router.get(
    "/{payment_id}",
    response_model=ApiResponse[PaymentResponse],
)
async def get_payment(
    payment_id: int,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Get payment by ID."""
    service = PaymentService(db)
    payment = await service.get_payment(payment_id)
    return ApiResponse(data=PaymentResponse.model_validate(payment))
