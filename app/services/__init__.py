"""
Staff Ledger - Services Package

Business logic services.
"""

from app.services.ledger_service import LedgerService, LedgerReconciliation
from app.services.settlement_service import SettlementService
from app.services.employee_service import EmployeeService, EmployeeBalance
from app.services.attendance_service import AttendanceService
from app.services.reports_service import ReportsService

__all__ = [
    # Core Services
    "LedgerService",
    "LedgerReconciliation",
    "SettlementService",
    # Directory
    "EmployeeService",
    "EmployeeBalance",
    "AttendanceService",
    "ReportsService",
]
