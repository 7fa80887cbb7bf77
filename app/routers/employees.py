"""
Staff Ledger - Employees Router

API endpoints for the employee directory.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.attendance import AttendanceStatus
from app.models.employee import PaymentStatus
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeSearchCriteria,
    Pagination,
    SortField,
    SortOrder,
    EmployeeResponse,
    EmployeeWithAggregatesResponse,
    EmployeeListResponse,
    EmployeeBalanceResponse,
    MessageResponse,
)
from app.services.employee_service import EmployeeService
from app.utils.error_handling import EmployeeNotFoundOrInactiveException


router = APIRouter()


@router.get(
    "",
    response_model=EmployeeListResponse,
    summary="List employees",
    description="List active employees with today's withdrawals, bonuses, deductions and attendance.",
)
async def list_employees(
    name: Optional[str] = Query(None, description="Name contains (case-insensitive)"),
    position: Optional[str] = Query(None, description="Position contains (case-insensitive)"),
    payment_status: Optional[PaymentStatus] = Query(None),
    attendance_status: Optional[AttendanceStatus] = Query(None, description="Today's attendance"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    sort_by: Optional[SortField] = Query(None),
    sort_order: SortOrder = Query("ASC"),
    db: AsyncSession = Depends(get_async_session),
):
    """List active employees."""
    service = EmployeeService(db)
    return await service.list_employees(
        criteria=EmployeeSearchCriteria(
            name=name,
            position=position,
            payment_status=payment_status,
            attendance_status=attendance_status,
        ),
        pagination=Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order),
    )


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new employee",
)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_async_session),
):
    """Create a new employee with a zero balance."""
    service = EmployeeService(db)
    return await service.create_employee(data)


@router.get(
    "/{employee_id}",
    response_model=EmployeeWithAggregatesResponse,
    summary="Get employee",
)
async def get_employee(
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    """Get an active employee with today's aggregates."""
    service = EmployeeService(db)
    return await service.get_employee_with_today_aggregates(employee_id)


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Update employee",
    description="Partial update of name, position, phone, daily wage and payment status.",
)
async def update_employee(
    data: EmployeeUpdate,
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    service = EmployeeService(db)
    return await service.update_employee(employee_id, data)


@router.delete(
    "/{employee_id}",
    response_model=MessageResponse,
    summary="Deactivate employee",
)
async def delete_employee(
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    """Soft-delete an employee. Ledger history is kept."""
    service = EmployeeService(db)
    await service.deactivate_employee(employee_id)
    return MessageResponse(message=f"Employee {employee_id} deactivated")


@router.get(
    "/{employee_id}/balance",
    response_model=EmployeeBalanceResponse,
    summary="Get employee balance",
)
async def get_employee_balance(
    employee_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_async_session),
):
    """Current balance; 404 only when the employee does not exist at all."""
    service = EmployeeService(db)
    balance = await service.get_balance(employee_id)
    if not balance.exists:
        raise EmployeeNotFoundOrInactiveException(employee_id)
    return EmployeeBalanceResponse(
        employee_id=balance.employee_id,
        exists=balance.exists,
        is_active=balance.is_active,
        current_balance=balance.current_balance,
    )
