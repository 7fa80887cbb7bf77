"""
Staff Ledger - Employee Schemas

Pydantic schemas for employee directory requests and responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.attendance import AttendanceStatus
from app.models.employee import PaymentStatus


SortField = Literal["name", "position", "daily_wage", "current_balance", "hire_date"]
SortOrder = Literal["ASC", "DESC"]


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if isinstance(value, str) else value


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class EmployeeCreate(BaseModel):
    """Schema for creating an employee. Balances always start at zero."""
    name: str = Field(..., min_length=2, max_length=100)
    position: str = Field(..., min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    daily_wage: Decimal = Field(..., ge=0, le=10000, decimal_places=2)
    hire_date: Optional[date] = None

    @field_validator("name", "position", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)

    @field_validator("phone", mode="before")
    @classmethod
    def blank_phone_to_none(cls, v):
        return _strip(v) or None


class EmployeeUpdate(BaseModel):
    """
    Partial update of directory attributes.

    Only fields present in the request are applied. Balance fields are not
    part of this schema; they change only through ledger transactions.
    """
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    position: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    daily_wage: Optional[Decimal] = Field(None, ge=0, le=10000, decimal_places=2)
    payment_status: Optional[PaymentStatus] = None

    @field_validator("name", "position", "phone", mode="before")
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class EmployeeSearchCriteria(BaseModel):
    """Listing filters."""
    name: Optional[str] = None
    position: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    attendance_status: Optional[AttendanceStatus] = None


class Pagination(BaseModel):
    """Listing pagination and ordering."""
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=500)
    sort_by: Optional[SortField] = None
    sort_order: SortOrder = "ASC"


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class EmployeeResponse(BaseModel):
    """Employee response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    position: str
    phone: str
    daily_wage: Decimal
    current_balance: Decimal
    total_bonuses: Decimal
    total_deductions: Decimal
    payment_status: PaymentStatus
    is_active: bool
    hire_date: date
    last_payment_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime


class EmployeeWithAggregatesResponse(EmployeeResponse):
    """Employee with today's ledger totals and attendance."""
    today_withdrawals: Decimal = Decimal("0.00")
    today_bonuses: Decimal = Decimal("0.00")
    today_deductions: Decimal = Decimal("0.00")
    today_attendance: AttendanceStatus = AttendanceStatus.ABSENT


class EmployeeListResponse(BaseModel):
    """Page of employees."""
    employees: List[EmployeeWithAggregatesResponse]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_previous: bool


class EmployeeBalanceResponse(BaseModel):
    """Balance lookup result."""
    employee_id: int
    exists: bool
    is_active: bool
    current_balance: Optional[Decimal] = None


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
    success: bool = True
