"""API endpoints for Students module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.auth.dependencies import AdminActor, CollectorActor
from feeledger.core.database.session import get_db
from feeledger.modules.fees.schemas import StudentLedgerResponse
from feeledger.modules.fees.service import StudentFeeService
from feeledger.modules.students.schemas import StudentCreate, StudentFilters, StudentResponse
from feeledger.modules.students.service import StudentService
from feeledger.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/students", tags=["Students"])


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    data: StudentCreate,
    current_actor: AdminActor,
    db: AsyncSession = Depends(get_db),
):
    """Register a student."""
    service = StudentService(db)
    student = await service.create_student(data, current_actor)
    return ApiResponse(
        data=StudentResponse.model_validate(student),
        message="Student created successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[StudentResponse]],
)
async def list_students(
    current_actor: CollectorActor,
    search: str | None = Query(None),
    academic_unit: str | None = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List students."""
    service = StudentService(db)
    students, total = await service.list_students(
        StudentFilters(
            search=search,
            academic_unit=academic_unit,
            include_inactive=include_inactive,
            page=page,
            limit=limit,
        )
    )
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{student_id}",
    response_model=ApiResponse[StudentResponse],
)
async def get_student(
    student_id: int,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Get student by ID."""
    service = StudentService(db)
    student = await service.get_student(student_id)
    return ApiResponse(data=StudentResponse.model_validate(student))


@router.get(
    "/{student_id}/ledger",
    response_model=ApiResponse[StudentLedgerResponse],
)
async def get_student_ledger(
    student_id: int,
    current_actor: CollectorActor,
    db: AsyncSession = Depends(get_db),
):
    """Fee ledger of a student: accounts, components, reductions and payments."""
    service = StudentFeeService(db)
    ledger = await service.get_fee_ledger(student_id)
    return ApiResponse(data=ledger)
