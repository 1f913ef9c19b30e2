#!/usr/bin/env python3
"""
Print a snapshot of the dashboard: header counters, today's takings and the
reports summary. Use to check that the API is reachable and the figures add up.

Usage:
  python scripts/dashboard_snapshot.py
  # API_BASE_URL in .env (or export) selects the backend
"""
import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dormpay.config import settings
from dormpay.core.logging import setup_logging
from dormpay.services.aggregation import daily_total, summarize_students
from dormpay.services.api_client import ApiClient
from dormpay.services.reports_service import ReportsService
from dormpay.services.student_store import StudentStore
from dormpay.utils.time import get_utc_now


async def snapshot() -> int:
    async with ApiClient() as api:
        store = StudentStore(api)
        reports = ReportsService(api)

        if not await store.init():
            print(f"ERROR: {store.error}")
            return 1
        await reports.init()

        now = get_utc_now()
        counters = summarize_students(store.active_students, now)
        today = daily_total(store.active_students, now)
        summary = reports.summary(store.active_students, now)

        print(f"Backend: {settings.API_BASE_URL}")
        print(f"Students: {counters.total_students} active, {len(store.deleted_students)} deleted")
        print(f"Paid this month: {counters.active_students}  Unpaid: {counters.inactive_students}")
        print(f"Collected this month: {counters.current_month_total:,.2f}")
        print(f"Collected today: {today.amount:,.2f} ({today.count} payments)")
        source = "local fallback" if reports.is_fallback else "server"
        print(f"Reports ({source}): total collected {summary.total_payments:,.2f}, "
              f"monthly {summary.monthly_payments:,.2f}")
        if reports.error:
            print(f"WARNING: {reports.error}")

        await reports.teardown()
        await store.teardown()
    return 0


def main():
    setup_logging()
    sys.exit(asyncio.run(snapshot()))


if __name__ == "__main__":
    main()
