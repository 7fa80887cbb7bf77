"""
Staff Ledger - Schemas Package

Pydantic schemas for request/response validation.
"""

from app.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeSearchCriteria,
    Pagination,
    EmployeeResponse,
    EmployeeWithAggregatesResponse,
    EmployeeListResponse,
    EmployeeBalanceResponse,
    MessageResponse,
)
from app.schemas.transaction import (
    TransactionCreateRequest,
    TransactionResponse,
    TransactionListResponse,
    SettlementResponse,
    ReconciliationResponse,
)
from app.schemas.attendance import (
    AttendanceMarkRequest,
    AttendanceResponse,
    AttendanceHistoryResponse,
)
from app.schemas.report import (
    EmployeeSummaryResponse,
    AttendanceReportItem,
    AttendanceReportResponse,
    FinancialReportItem,
    FinancialReportResponse,
)
