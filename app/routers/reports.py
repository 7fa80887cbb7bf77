"""
Staff Ledger - Reports Router

Read-only reports. Mounted before the per-employee routes so that
/reports/... never matches /{employee_id}/....
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.schemas.report import (
    EmployeeSummaryResponse,
    AttendanceReportResponse,
    FinancialReportResponse,
)
from app.services.reports_service import ReportsService


router = APIRouter(prefix="/reports")


@router.get(
    "/summary",
    response_model=EmployeeSummaryResponse,
    summary="Dashboard summary",
)
async def get_summary(
    db: AsyncSession = Depends(get_async_session),
):
    """Headcount, today's attendance and today's ledger totals."""
    service = ReportsService(db)
    return await service.get_summary()


@router.get(
    "/attendance",
    response_model=AttendanceReportResponse,
    summary="Attendance report",
)
async def get_attendance_report(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: AsyncSession = Depends(get_async_session),
):
    service = ReportsService(db)
    items = await service.get_attendance_report(start_date, end_date)
    return AttendanceReportResponse(start_date=start_date, end_date=end_date, items=items)


@router.get(
    "/financial",
    response_model=FinancialReportResponse,
    summary="Financial report",
)
async def get_financial_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
):
    """Ledger totals per active employee."""
    service = ReportsService(db)
    items = await service.get_financial_report(start_date, end_date)
    return FinancialReportResponse(start_date=start_date, end_date=end_date, items=items)
