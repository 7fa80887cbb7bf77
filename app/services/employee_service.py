"""
Staff Ledger - Employee Service

Employee directory: create, read, list, update and soft-delete employees,
plus the read-only balance and "today" views the ledger feeds.

Balance fields are never written here; see LedgerService.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import Select, case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.employee import Employee
from app.models.ledger import FinancialTransaction, TransactionType
from app.schemas.employee import (
    EmployeeCreate,
    EmployeeSearchCriteria,
    EmployeeUpdate,
    Pagination,
)
from app.utils.error_handling import (
    DuplicateEntryException,
    EmployeeNotFoundOrInactiveException,
    ErrorCode,
    FieldViolation,
    ValidationException,
    raise_validation_errors,
)


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

SORT_COLUMNS = {
    "name": Employee.name,
    "position": Employee.position,
    "daily_wage": Employee.daily_wage,
    "current_balance": Employee.current_balance,
    "hire_date": Employee.hire_date,
}


@dataclass(frozen=True)
class EmployeeBalance:
    """Balance lookup used by callers that must not fail on a missing employee."""
    employee_id: int
    exists: bool
    is_active: bool
    current_balance: Optional[Decimal] = None


def _employee_fields(employee: Employee) -> Dict[str, Any]:
    return {column.key: getattr(employee, column.key) for column in Employee.__table__.columns}


def _money(value: Any) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT)


class EmployeeService:
    """Service for employee directory operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # TODAY AGGREGATES
    # ===========================================

    def _today_query(self, today: date) -> Select:
        """Employees joined with today's ledger totals and attendance mark."""
        def total_of(kind: TransactionType):
            return func.sum(
                case(
                    (FinancialTransaction.transaction_type == kind, FinancialTransaction.amount),
                    else_=0,
                )
            )

        ledger_today = (
            select(
                FinancialTransaction.employee_id.label("employee_id"),
                total_of(TransactionType.WITHDRAWAL).label("today_withdrawals"),
                total_of(TransactionType.BONUS).label("today_bonuses"),
                total_of(TransactionType.DEDUCTION).label("today_deductions"),
            )
            .where(FinancialTransaction.transaction_date == today)
            .group_by(FinancialTransaction.employee_id)
            .subquery("ledger_today")
        )
        attendance_today = (
            select(
                AttendanceRecord.employee_id.label("employee_id"),
                AttendanceRecord.status.label("status"),
            )
            .where(AttendanceRecord.attendance_date == today)
            .subquery("attendance_today")
        )

        return (
            select(
                Employee,
                ledger_today.c.today_withdrawals,
                ledger_today.c.today_bonuses,
                ledger_today.c.today_deductions,
                attendance_today.c.status.label("today_attendance"),
            )
            .outerjoin(ledger_today, ledger_today.c.employee_id == Employee.id)
            .outerjoin(attendance_today, attendance_today.c.employee_id == Employee.id)
        )

    @staticmethod
    def _with_aggregates(row) -> Dict[str, Any]:
        data = _employee_fields(row.Employee)
        data.update(
            today_withdrawals=_money(row.today_withdrawals),
            today_bonuses=_money(row.today_bonuses),
            today_deductions=_money(row.today_deductions),
            today_attendance=AttendanceStatus(row.today_attendance or AttendanceStatus.ABSENT),
        )
        return data

    async def get_employee_with_today_aggregates(self, employee_id: int) -> Dict[str, Any]:
        """
        Get an active employee with today's withdrawals, bonuses, deductions
        and attendance (absent when not marked).

        Raises:
            EmployeeNotFoundOrInactiveException
        """
        stmt = self._today_query(date.today()).where(
            Employee.id == employee_id,
            Employee.is_active == True,  # noqa: E712
        )
        row = (await self.db.execute(stmt)).one_or_none()
        if row is None:
            raise EmployeeNotFoundOrInactiveException(employee_id)
        return self._with_aggregates(row)

    async def list_employees(
        self,
        criteria: Optional[EmployeeSearchCriteria] = None,
        pagination: Optional[Pagination] = None,
    ) -> Dict[str, Any]:
        """
        List active employees with today's aggregates.

        Returns:
            Dict with employees, total and pagination flags
        """
        criteria = criteria or EmployeeSearchCriteria()
        pagination = pagination or Pagination()
        today = date.today()

        stmt = self._today_query(today).where(Employee.is_active == True)  # noqa: E712

        if criteria.name:
            stmt = stmt.where(Employee.name.ilike(f"%{criteria.name}%"))
        if criteria.position:
            stmt = stmt.where(Employee.position.ilike(f"%{criteria.position}%"))
        if criteria.payment_status:
            stmt = stmt.where(Employee.payment_status == criteria.payment_status)
        if criteria.attendance_status is not None:
            present_today = select(AttendanceRecord.employee_id).where(
                AttendanceRecord.attendance_date == today,
                AttendanceRecord.status == AttendanceStatus.PRESENT,
            )
            if criteria.attendance_status is AttendanceStatus.PRESENT:
                stmt = stmt.where(Employee.id.in_(present_today))
            else:
                stmt = stmt.where(Employee.id.not_in(present_today))

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.db.execute(count_stmt)).scalar_one()

        sort_column = SORT_COLUMNS.get(pagination.sort_by or "name", Employee.name)
        order = sort_column.desc() if pagination.sort_order == "DESC" else sort_column.asc()
        stmt = (
            stmt.order_by(order, Employee.id.asc())
            .offset((pagination.page - 1) * pagination.limit)
            .limit(pagination.limit)
        )

        rows = (await self.db.execute(stmt)).all()
        total_pages = math.ceil(total / pagination.limit) if total else 0

        return {
            "employees": [self._with_aggregates(row) for row in rows],
            "total": total,
            "page": pagination.page,
            "limit": pagination.limit,
            "total_pages": total_pages,
            "has_next": pagination.page < total_pages,
            "has_previous": pagination.page > 1,
        }

    # ===========================================
    # BALANCE
    # ===========================================

    async def get_balance(self, employee_id: int) -> EmployeeBalance:
        """Report existence, active flag and current balance without raising."""
        result = await self.db.execute(
            select(Employee.is_active, Employee.current_balance).where(Employee.id == employee_id)
        )
        row = result.one_or_none()
        if row is None:
            return EmployeeBalance(employee_id=employee_id, exists=False, is_active=False)
        return EmployeeBalance(
            employee_id=employee_id,
            exists=True,
            is_active=row.is_active,
            current_balance=_money(row.current_balance),
        )

    # ===========================================
    # CRUD
    # ===========================================

    async def get_active_employee(self, employee_id: int) -> Employee:
        """Get an active employee by ID or raise EmployeeNotFoundOrInactiveException."""
        result = await self.db.execute(
            select(Employee).where(Employee.id == employee_id, Employee.is_active == True)  # noqa: E712
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundOrInactiveException(employee_id)
        return employee

    async def _ensure_name_available(self, name: str, exclude_id: Optional[int] = None) -> None:
        stmt = select(Employee.id).where(Employee.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Employee.id != exclude_id)
        if (await self.db.execute(stmt)).first() is not None:
            raise DuplicateEntryException("Employee", "name", name)

    async def _commit_employee(self, employee: Employee) -> Employee:
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateEntryException("Employee", "name", employee.name) from exc
        await self.db.refresh(employee)
        return employee

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        """
        Create a new employee. Balances and counters start at zero.

        Raises:
            DuplicateEntryException: name already taken
        """
        await self._ensure_name_available(data.name)

        employee = Employee(
            name=data.name,
            position=data.position,
            phone=data.phone or "",
            daily_wage=data.daily_wage,
            hire_date=data.hire_date or date.today(),
        )
        self.db.add(employee)
        employee = await self._commit_employee(employee)

        logger.info(f"Created employee {employee.id} ({employee.name})")
        return employee

    async def update_employee(self, employee_id: int, data: EmployeeUpdate) -> Employee:
        """
        Apply a partial update to an active employee.

        Only fields present in the request are written, each by name.

        Raises:
            ValidationException: no fields given, or a required field set to null
            EmployeeNotFoundOrInactiveException
            DuplicateEntryException: new name already taken
        """
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValidationException("No fields provided for update")

        raise_validation_errors([
            ValidationException(
                f"{field} cannot be null",
                field=field,
                violations=[FieldViolation(field, ErrorCode.VALIDATION_ERROR, f"{field} cannot be null")],
            )
            for field in ("name", "position", "daily_wage", "payment_status")
            if field in changes and changes[field] is None
        ])

        employee = await self.get_active_employee(employee_id)

        if "name" in changes:
            await self._ensure_name_available(data.name, exclude_id=employee_id)
            employee.name = data.name
        if "position" in changes:
            employee.position = data.position
        if "phone" in changes:
            employee.phone = data.phone or ""
        if "daily_wage" in changes:
            employee.daily_wage = data.daily_wage
        if "payment_status" in changes:
            employee.payment_status = data.payment_status

        employee = await self._commit_employee(employee)
        logger.info(f"Updated employee {employee_id}: {', '.join(changes)}")
        return employee

    async def deactivate_employee(self, employee_id: int) -> Employee:
        """Soft-delete an active employee."""
        employee = await self.get_active_employee(employee_id)
        employee.is_active = False
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Deactivated employee {employee_id}")
        return employee

    async def count_employees(self) -> Tuple[int, int]:
        """Return (total, active) employee counts."""
        result = await self.db.execute(
            select(
                func.count(Employee.id),
                func.coalesce(func.sum(case((Employee.is_active == True, 1), else_=0)), 0),  # noqa: E712
            )
        )
        total, active = result.one()
        return total, int(active)
