"""
Staff Ledger - Routers Package

FastAPI route handlers.

Routers:
- reports: Dashboard summary, attendance and financial reports
- employees: Employee directory and balance lookup
- attendance: Daily attendance marking and history
- transactions: Ledger postings, history, reconciliation and settlement
"""

from app.routers import (
    reports,
    employees,
    attendance,
    transactions,
)

__all__ = [
    "reports",
    "employees",
    "attendance",
    "transactions",
]
