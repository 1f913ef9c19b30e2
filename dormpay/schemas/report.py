from typing import Optional

from pydantic import BaseModel, Field

from dormpay.models.enums import HistoryStatus
from dormpay.schemas.base import CamelModel
from dormpay.schemas.payment import Payment


class ReportsSummary(CamelModel):
    """
    Aggregate figures for the reports page.

    Example:
        {
            "totalStudents": 40,
            "activeStudents": 31,
            "inactiveStudents": 9,
            "totalPayments": 152000,
            "monthlyPayments": 15500,
            "monthlyActiveCount": 31
        }
    """
    total_students: int = Field(0, ge=0)
    active_students: int = Field(0, ge=0)
    inactive_students: int = Field(0, ge=0)
    total_payments: float = 0
    monthly_payments: float = 0
    monthly_active_count: int = Field(0, ge=0)


class PaymentSummary(CamelModel):
    """Header counters of the students page."""
    total_students: int = 0
    active_students: int = 0
    inactive_students: int = 0
    current_month_total: float = 0


class DailyTotal(CamelModel):
    amount: float = 0
    count: int = 0


class HistoryEntry(BaseModel):
    """One row of a student's month-by-month payment history."""
    key: str
    year: int
    month: int
    label: str
    ordinal: Optional[int] = None
    payment: Optional[Payment] = None
    status: HistoryStatus
