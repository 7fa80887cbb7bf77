"""
Staff Ledger - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin, CreatedAtMixin
from app.models.employee import Employee, PaymentStatus
from app.models.ledger import FinancialTransaction, TransactionType, BALANCE_SIGN
from app.models.attendance import AttendanceRecord, AttendanceStatus


__all__ = [
    # Base
    "BaseModel",
    "TimestampMixin",
    "CreatedAtMixin",
    # Employee directory
    "Employee",
    "PaymentStatus",
    # Ledger
    "FinancialTransaction",
    "TransactionType",
    "BALANCE_SIGN",
    # Attendance
    "AttendanceRecord",
    "AttendanceStatus",
]
