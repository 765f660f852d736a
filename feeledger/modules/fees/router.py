"""API endpoints for Student Fees module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.auth.dependencies import CollectorActor
from feeledger.core.database.session import get_db
from feeledger.modules.fees.models import FeeStatus
from feeledger.modules.fees.schemas import (
    FeeAssign,
    ReductionsAdd,
    StudentFeeFilters,
    StudentFeeResponse,
)
from feeledger.modules.fees.service import StudentFeeService
from feeledger.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/student-fees", tags=["Student Fees"])


@router.post(
    "/assign",
    response_model=ApiResponse[StudentFeeResponse],
    status_code=status.HTTP_201_CREATED,
)
async def assign_fee_structure(
    data: FeeAssign,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Assign a fee structure to a student, with optional discounts and scholarships."""
    service = StudentFeeService(db)
    account = await service.assign_structure(data, current_actor)
    return ApiResponse(
        data=StudentFeeResponse.from_account(account),
        message="Fee structure assigned successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[StudentFeeResponse]],
)
async def list_student_fees(
    current_actor: CollectorActor,
    student_id: int | None = Query(None),
    fee_structure_id: int | None = Query(None),
    academic_year: str | None = Query(None),
    status: FeeStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List student fee accounts."""
    service = StudentFeeService(db)
    accounts, total = await service.list_accounts(
        StudentFeeFilters(
            student_id=student_id,
            fee_structure_id=fee_structure_id,
            academic_year=academic_year,
            status=status,
            page=page,
            limit=limit,
        )
    )
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[StudentFeeResponse.from_account(a) for a in accounts],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{student_fee_id}",
    response_model=ApiResponse[StudentFeeResponse],
)
async def get_student_fee(
    student_fee_id: int,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Get student fee account by ID."""
    service = StudentFeeService(db)
    account = await service.get_account(student_fee_id)
    return ApiResponse(data=StudentFeeResponse.from_account(account))


@router.post(
    "/{student_fee_id}/reductions",
    response_model=ApiResponse[StudentFeeResponse],
)
async def add_reductions(
    student_fee_id: int,
    data: ReductionsAdd,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Add discounts or scholarships to an account."""
    service = StudentFeeService(db)
    account = await service.add_reductions(student_fee_id, data, current_actor)
    return ApiResponse(
        data=StudentFeeResponse.from_account(account),
        message="Reductions applied successfully",
    )
