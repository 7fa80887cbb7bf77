"""
Staff Ledger - Report Schemas
"""

from datetime import date
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, ConfigDict


class EmployeeSummaryResponse(BaseModel):
    """Dashboard summary."""
    model_config = ConfigDict(from_attributes=True)

    total_employees: int
    active_employees: int
    present_today: int
    total_daily_wages: Decimal
    total_current_balance: Decimal
    total_withdrawals_today: Decimal
    total_bonuses_today: Decimal
    total_deductions_today: Decimal


class AttendanceReportItem(BaseModel):
    """Attendance totals of one employee over a period."""
    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    name: str
    position: str
    present_days: int
    absent_days: int
    total_days: int
    attendance_percentage: Decimal


class AttendanceReportResponse(BaseModel):
    start_date: date
    end_date: date
    items: List[AttendanceReportItem]


class FinancialReportItem(BaseModel):
    """Ledger totals of one employee over a period."""
    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    name: str
    position: str
    total_withdrawals: Decimal
    total_bonuses: Decimal
    total_deductions: Decimal
    total_salary_payments: Decimal
    current_balance: Decimal
    last_payment_date: Optional[date] = None


class FinancialReportResponse(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    items: List[FinancialReportItem]
