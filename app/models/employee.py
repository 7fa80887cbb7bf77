"""
Staff Ledger - Employee Model

Employee records with a materialized summary of each employee's ledger.

The balance fields (current_balance, total_bonuses, total_deductions) are
maintained only by LedgerService inside the same database transaction as the
ledger insert that changes them.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean, CheckConstraint, Date, Numeric, String,
    Enum as SQLEnum, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel, TimestampMixin

if TYPE_CHECKING:
    from app.models.attendance import AttendanceRecord
    from app.models.ledger import FinancialTransaction


class PaymentStatus(str, Enum):
    """Salary payment status of an employee."""
    PENDING = "pending"
    PAID = "paid"
    DEFERRED = "deferred"


class Employee(BaseModel, TimestampMixin):
    """
    Employee model.

    Inactive employees are soft-deleted: they stay in the table for the audit
    trail but are excluded from listings and from every financial operation.
    """

    __tablename__ = "employees"
    __table_args__ = (
        CheckConstraint("daily_wage >= 0", name="daily_wage_non_negative"),
        CheckConstraint("total_bonuses >= 0", name="total_bonuses_non_negative"),
        CheckConstraint("total_deductions >= 0", name="total_deductions_non_negative"),
    )

    # Identity
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    position: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    hire_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        server_default=func.current_date(),
    )

    # Compensation
    daily_wage: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )

    # Ledger summary (positive balance = owed to the employee)
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )
    total_bonuses: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )
    total_deductions: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )

    # Payment
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    last_payment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # Soft delete
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    # Relationships
    transactions: Mapped[List["FinancialTransaction"]] = relationship(
        "FinancialTransaction",
        back_populates="employee",
        lazy="noload",
    )
    attendance_records: Mapped[List["AttendanceRecord"]] = relationship(
        "AttendanceRecord",
        back_populates="employee",
        lazy="noload",
    )
