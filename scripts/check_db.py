"""Quick script to check database state for debugging."""
import asyncio

from sqlalchemy import text

from app.config import settings
from app.database import async_session_maker, check_database as ping_database
from app.services.ledger_service import LedgerService


async def check_database():
    print("Checking database state...")
    print(f"Database URL: {settings.database_url_async.split('@')[-1]}")

    health = await ping_database()
    print(f"Connection: {health['database']}")
    print(f"Pool: {health['pool']}")
    if health["database"] != "connected":
        return

    async with async_session_maker() as db:
        result = await db.execute(
            text("SELECT COUNT(*), SUM(CASE WHEN is_active THEN 1 ELSE 0 END) FROM employees")
        )
        total, active = result.one()
        print(f"\nEmployees: {total} ({active or 0} active)")

        result = await db.execute(text("SELECT COUNT(*) FROM financial_transactions"))
        print(f"Ledger entries: {result.scalar()}")

        result = await db.execute(text("SELECT COUNT(*) FROM attendance"))
        print(f"Attendance records: {result.scalar()}")

        # Cached balances must match the ledger
        result = await db.execute(text("SELECT id, name FROM employees WHERE is_active"))
        ledger = LedgerService(db)
        mismatches = 0
        for employee_id, name in result.fetchall():
            check = await ledger.reconcile(employee_id)
            if not check.is_consistent:
                mismatches += 1
                print(
                    f"  MISMATCH {employee_id} {name}: balance {check.current_balance} "
                    f"vs ledger {check.ledger_balance}"
                )
        print(f"\nBalance mismatches: {mismatches}")


if __name__ == "__main__":
    asyncio.run(check_database())
