"""API for fee reports (staff only)."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from feeledger.core.auth.dependencies import CollectorActor
from feeledger.core.database.session import get_db
from feeledger.modules.reports.schemas import CollectionSummaryResponse, DuesReportResponse
from feeledger.modules.reports.service import ReportsService
from feeledger.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get(
    "/collection-summary",
    response_model=ApiResponse[CollectionSummaryResponse],
)
async def get_collection_summary(
    current_actor: CollectorActor,
    date_from: date | None = Query(None, description="First day of the period (inclusive)."),
    date_to: date | None = Query(None, description="Last day of the period (inclusive)."),
    academic_year: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Collection Summary: total, count and average of payments, by method, by day and by class.

    Access: SuperAdmin, SchoolAdmin, Staff.
    """
    service = ReportsService(db)
    data = await service.collection_summary(
        date_from=date_from, date_to=date_to, academic_year=academic_year
    )
    return ApiResponse(data=CollectionSummaryResponse(**data))


@router.get(
    "/dues",
    response_model=ApiResponse[DuesReportResponse],
)
async def get_dues(
    current_actor: CollectorActor,
    academic_year: str | None = Query(None),
    academic_unit: str | None = Query(None, description="Class/section, e.g. 'Grade 5 - A'."),
    overdue_only: bool = Query(False),
    as_at_date: date | None = Query(None, description="Overdue cut-off (default: today)."),
    db: AsyncSession = Depends(get_db),
):
    """
    Dues: unpaid balances with overdue count, by class, and one row per account.

    Access: SuperAdmin, SchoolAdmin, Staff.
    """
    service = ReportsService(db)
    data = await service.dues_report(
        academic_year=academic_year,
        academic_unit=academic_unit,
        overdue_only=overdue_only,
        as_at_date=as_at_date,
    )
    return ApiResponse(data=DuesReportResponse(**data))
