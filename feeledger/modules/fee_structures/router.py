"""API endpoints for Fee Structures module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.auth.dependencies import AdminActor, CurrentActor
from feeledger.core.database.session import get_db
from feeledger.modules.fee_structures.models import FeeStructure
from feeledger.modules.fee_structures.schemas import (
    FeeStructureCreate,
    FeeStructureFilters,
    FeeStructureResponse,
    FeeStructureUpdate,
)
from feeledger.modules.fee_structures.service import FeeStructureService
from feeledger.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/fee-structures", tags=["Fee Structures"])


def _to_response(structure: FeeStructure, assigned_count: int) -> FeeStructureResponse:
    response = FeeStructureResponse.model_validate(structure)
    response.assigned_count = assigned_count
    return response


@router.post(
    "",
    response_model=ApiResponse[FeeStructureResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_fee_structure(
    data: FeeStructureCreate,
    current_actor: AdminActor,
    db: AsyncSession = Depends(get_db),
):
    """Create a fee structure with its components."""
    service = FeeStructureService(db)
    structure = await service.create_structure(data, current_actor)
    return ApiResponse(
        data=_to_response(structure, 0),
        message="Fee structure created successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[PaginatedResponse[FeeStructureResponse]],
)
async def list_fee_structures(
    current_actor: CurrentActor,
    academic_year: str | None = Query(None),
    academic_unit: str | None = Query(None),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """List fee structures."""
    service = FeeStructureService(db)
    structures, total = await service.list_structures(
        FeeStructureFilters(
            academic_year=academic_year,
            academic_unit=academic_unit,
            include_inactive=include_inactive,
            page=page,
            limit=limit,
        )
    )
    counts = await service.assigned_counts([s.id for s in structures])
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[_to_response(s, counts.get(s.id, 0)) for s in structures],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get(
    "/{structure_id}",
    response_model=ApiResponse[FeeStructureResponse],
)
async def get_fee_structure(
    structure_id: int,
    current_actor: CurrentActor,
    db: AsyncSession = Depends(get_db),
):
    """Get fee structure by ID."""
    service = FeeStructureService(db)
    structure = await service.get_structure(structure_id)
    return ApiResponse(data=_to_response(structure, await service.count_assigned(structure_id)))


@router.patch(
    "/{structure_id}",
    response_model=ApiResponse[FeeStructureResponse],
)
async def update_fee_structure(
    structure_id: int,
    data: FeeStructureUpdate,
    current_actor: AdminActor,
    db: AsyncSession = Depends(get_db),
):
    """Update a fee structure. Locked structures are rejected with 409."""
    service = FeeStructureService(db)
    structure = await service.update_structure(structure_id, data, current_actor)
    return ApiResponse(
        data=_to_response(structure, 0),
        message="Fee structure updated successfully",
    )


@router.post(
    "/{structure_id}/archive",
    response_model=ApiResponse[FeeStructureResponse],
)
async def archive_fee_structure(
    structure_id: int,
    current_actor: AdminActor,
    db: AsyncSession = Depends(get_db),
):
    """Deactivate a fee structure. Works on locked structures."""
    service = FeeStructureService(db)
    structure = await service.archive_structure(structure_id, current_actor)
    return ApiResponse(
        data=_to_response(structure, await service.count_assigned(structure_id)),
        message="Fee structure archived",
    )


@router.delete(
    "/{structure_id}",
    response_model=ApiResponse[None],
)
async def delete_fee_structure(
    structure_id: int,
    current_actor: AdminActor,
    db: AsyncSession = Depends(get_db),
):
    """Delete a fee structure nobody is assigned to."""
    service = FeeStructureService(db)
    await service.delete_structure(structure_id, current_actor)
    return ApiResponse(data=None, message="Fee structure deleted successfully")
