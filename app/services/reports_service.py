"""
Staff Ledger - Reports Service

Read-only reports over the employee directory, attendance and the ledger.

Reports:
- Dashboard summary (today)
- Attendance report for a date range
- Financial report per active employee
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, and_, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.employee import Employee
from app.models.ledger import FinancialTransaction, TransactionType
from app.utils.error_handling import InvalidDateRangeException


CENT = Decimal("0.01")


def _money(value: Any) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def _sum_of(kind: TransactionType):
    return func.coalesce(
        func.sum(
            case(
                (FinancialTransaction.transaction_type == kind, FinancialTransaction.amount),
                else_=0,
            )
        ),
        0,
    )


class ReportsService:
    """Service for generating employee reports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ===========================================
    # DASHBOARD SUMMARY
    # ===========================================

    async def get_summary(self, today: Optional[date] = None) -> Dict[str, Any]:
        """Headcount, today's attendance and today's ledger totals."""
        today = today or date.today()
        is_active = Employee.is_active == True  # noqa: E712

        employees_result = await self.db.execute(
            select(
                func.count(Employee.id).label("total"),
                func.coalesce(func.sum(case((is_active, 1), else_=0)), 0).label("active"),
                func.coalesce(func.sum(case((is_active, Employee.daily_wage), else_=0)), 0).label("wages"),
                func.coalesce(func.sum(case((is_active, Employee.current_balance), else_=0)), 0).label("balance"),
            )
        )
        employees = employees_result.one()

        present_result = await self.db.execute(
            select(func.count(AttendanceRecord.id))
            .join(Employee, AttendanceRecord.employee_id == Employee.id)
            .where(is_active)
            .where(AttendanceRecord.attendance_date == today)
            .where(AttendanceRecord.status == AttendanceStatus.PRESENT)
        )
        present_today = present_result.scalar() or 0

        ledger_result = await self.db.execute(
            select(
                _sum_of(TransactionType.WITHDRAWAL).label("withdrawals"),
                _sum_of(TransactionType.BONUS).label("bonuses"),
                _sum_of(TransactionType.DEDUCTION).label("deductions"),
            )
            .join(Employee, FinancialTransaction.employee_id == Employee.id)
            .where(is_active)
            .where(FinancialTransaction.transaction_date == today)
        )
        ledger = ledger_result.one()

        return {
            "total_employees": employees.total,
            "active_employees": int(employees.active),
            "present_today": present_today,
            "total_daily_wages": _money(employees.wages),
            "total_current_balance": _money(employees.balance),
            "total_withdrawals_today": _money(ledger.withdrawals),
            "total_bonuses_today": _money(ledger.bonuses),
            "total_deductions_today": _money(ledger.deductions),
        }

    # ===========================================
    # ATTENDANCE REPORT
    # ===========================================

    async def get_attendance_report(
        self,
        start_date: date,
        end_date: date,
    ) -> List[Dict[str, Any]]:
        """
        Present/absent day counts per active employee between two dates
        (inclusive). Attendance percentage is present days over marked days.
        """
        if start_date > end_date:
            raise InvalidDateRangeException(start_date.isoformat(), end_date.isoformat())

        present = func.coalesce(
            func.sum(case((AttendanceRecord.status == AttendanceStatus.PRESENT, 1), else_=0)), 0
        )
        absent = func.coalesce(
            func.sum(case((AttendanceRecord.status == AttendanceStatus.ABSENT, 1), else_=0)), 0
        )
        result = await self.db.execute(
            select(
                Employee.id,
                Employee.name,
                Employee.position,
                present.label("present_days"),
                absent.label("absent_days"),
                func.count(AttendanceRecord.id).label("total_days"),
            )
            .join(
                AttendanceRecord,
                and_(
                    AttendanceRecord.employee_id == Employee.id,
                    AttendanceRecord.attendance_date >= start_date,
                    AttendanceRecord.attendance_date <= end_date,
                ),
                isouter=True,
            )
            .where(Employee.is_active == True)  # noqa: E712
            .group_by(Employee.id, Employee.name, Employee.position)
            .order_by(Employee.name)
        )

        items = []
        for row in result:
            total_days = row.total_days or 0
            percentage = Decimal("0.00")
            if total_days:
                percentage = (Decimal(int(row.present_days)) * 100 / total_days).quantize(
                    CENT, rounding=ROUND_HALF_UP
                )
            items.append({
                "employee_id": row.id,
                "name": row.name,
                "position": row.position,
                "present_days": int(row.present_days),
                "absent_days": int(row.absent_days),
                "total_days": total_days,
                "attendance_percentage": percentage,
            })
        return items

    # ===========================================
    # FINANCIAL REPORT
    # ===========================================

    async def get_financial_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Ledger totals per active employee, optionally bounded by transaction
        date, with the current balance and last payment date.
        """
        if start_date and end_date and start_date > end_date:
            raise InvalidDateRangeException(start_date.isoformat(), end_date.isoformat())

        join_on = [FinancialTransaction.employee_id == Employee.id]
        if start_date:
            join_on.append(FinancialTransaction.transaction_date >= start_date)
        if end_date:
            join_on.append(FinancialTransaction.transaction_date <= end_date)

        result = await self.db.execute(
            select(
                Employee.id,
                Employee.name,
                Employee.position,
                Employee.current_balance,
                Employee.last_payment_date,
                _sum_of(TransactionType.WITHDRAWAL).label("withdrawals"),
                _sum_of(TransactionType.BONUS).label("bonuses"),
                _sum_of(TransactionType.DEDUCTION).label("deductions"),
                _sum_of(TransactionType.SALARY_PAYMENT).label("salary_payments"),
            )
            .join(FinancialTransaction, and_(*join_on), isouter=True)
            .where(Employee.is_active == True)  # noqa: E712
            .group_by(
                Employee.id,
                Employee.name,
                Employee.position,
                Employee.current_balance,
                Employee.last_payment_date,
            )
            .order_by(Employee.name)
        )

        return [
            {
                "employee_id": row.id,
                "name": row.name,
                "position": row.position,
                "total_withdrawals": _money(row.withdrawals),
                "total_bonuses": _money(row.bonuses),
                "total_deductions": _money(row.deductions),
                "total_salary_payments": _money(row.salary_payments),
                "current_balance": _money(row.current_balance),
                "last_payment_date": row.last_payment_date,
            }
            for row in result
        ]
