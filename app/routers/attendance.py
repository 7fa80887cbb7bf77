"""
Staff Ledger - Attendance Router
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.schemas.attendance import (
    AttendanceMarkRequest,
    AttendanceResponse,
    AttendanceHistoryResponse,
)
from app.services.attendance_service import AttendanceService


router = APIRouter()


@router.post(
    "/{employee_id}/attendance",
    response_model=AttendanceResponse,
    summary="Mark attendance",
    description="Mark attendance for a day (today by default). Re-marking a day replaces it.",
)
async def mark_attendance(
    data: AttendanceMarkRequest,
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    service = AttendanceService(db)
    return await service.mark_attendance(employee_id, data)


@router.get(
    "/{employee_id}/attendance",
    response_model=AttendanceHistoryResponse,
    summary="Attendance history",
)
async def get_attendance_history(
    employee_id: int = Path(..., gt=0),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
):
    service = AttendanceService(db)
    records = await service.get_attendance_history(employee_id, start_date, end_date)
    return AttendanceHistoryResponse(
        employee_id=employee_id,
        records=[AttendanceResponse.model_validate(r) for r in records],
        count=len(records),
    )
