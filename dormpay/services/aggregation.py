"""
Aggregation and query engine.

Pure functions over lists of students and a reference "now". Nothing here
touches the network or mutates its inputs; callers recompute derived views
from the current store contents whenever they need them.
"""

import calendar
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

from dormpay.models.enums import HistoryStatus, SortField, SortOrder
from dormpay.schemas.payment import Payment
from dormpay.schemas.report import DailyTotal, HistoryEntry, PaymentSummary, ReportsSummary
from dormpay.schemas.student import Student
from dormpay.utils.numbers import parse_int
from dormpay.utils.time import iso_day, iter_months, parse_calendar_date


def _confirmed_in_month(student: Student, year: int, month: int) -> List[Payment]:
    return [p for p in student.payments if p.confirmed and p.falls_in(year, month)]


def is_active_this_month(student: Student, now: datetime) -> bool:
    """A student is active when a confirmed payment exists for now's month and year."""
    return bool(_confirmed_in_month(student, now.year, now.month))


def current_month_total(students: Iterable[Student], now: datetime) -> float:
    """Sum of every confirmed payment dated in now's month, across all students."""
    return sum(
        p.amount
        for student in students
        for p in _confirmed_in_month(student, now.year, now.month)
    )


def summarize_students(students: Sequence[Student], now: datetime) -> PaymentSummary:
    total = len(students)
    active = sum(1 for s in students if is_active_this_month(s, now))
    return PaymentSummary(
        total_students=total,
        active_students=active,
        inactive_students=total - active,
        current_month_total=current_month_total(students, now),
    )


def daily_total(students: Iterable[Student], now: datetime) -> DailyTotal:
    """Confirmed payments whose date string is exactly today's date."""
    today = iso_day(now)
    todays = [p for s in students for p in s.payments if p.confirmed and p.date == today]
    return DailyTotal(amount=sum(p.amount for p in todays), count=len(todays))


def total_confirmed_amount(student: Student) -> float:
    return sum(p.amount for p in student.payments if p.confirmed)


def pending_payments(student: Student) -> List[Payment]:
    return [p for p in student.payments if not p.confirmed]


def last_confirmed_payment(student: Student) -> Optional[Payment]:
    """Most recent confirmed payment by date; undated payments count as oldest."""
    confirmed = [p for p in student.payments if p.confirmed]
    if not confirmed:
        return None
    return max(confirmed, key=lambda p: parse_calendar_date(p.date) or datetime.min.date())


def build_reports_summary(students: Sequence[Student], now: datetime) -> ReportsSummary:
    """Local stand-in for the server's reports summary."""
    counters = summarize_students(students, now)
    return ReportsSummary(
        total_students=counters.total_students,
        active_students=counters.active_students,
        inactive_students=counters.inactive_students,
        total_payments=sum(total_confirmed_amount(s) for s in students),
        monthly_payments=counters.current_month_total,
        monthly_active_count=counters.active_students,
    )


def payment_history(student: Student, now: datetime) -> List[HistoryEntry]:
    """
    Month-by-month history from the student's join month through now's month.

    Each month yields one entry per payment recorded for it (labelled with
    an ordinal when there are several) or a single placeholder: MISSED for a
    month already over, PENDING for the current one. Unconfirmed payments
    are PENDING, confirmed ones PAID. Most recent month first, and within a
    month the latest payment first.
    """
    start = parse_calendar_date(student.date_added)
    if start is None:
        return []

    current = (now.year, now.month)
    entries: List[HistoryEntry] = []
    for year, month in iter_months(start, now.date()):
        name = f"{calendar.month_name[month]} {year}"
        key = f"{year}-{month:02d}"
        matching = [p for p in student.payments if p.falls_in(year, month)]

        if not matching:
            entries.append(HistoryEntry(
                key=key,
                year=year,
                month=month,
                label=name,
                status=HistoryStatus.MISSED if (year, month) < current else HistoryStatus.PENDING,
            ))
            continue

        several = len(matching) > 1
        for index, payment in enumerate(matching, 1):
            entries.append(HistoryEntry(
                key=f"{key}-{index}",
                year=year,
                month=month,
                label=f"{name} (payment {index})" if several else name,
                ordinal=index if several else None,
                payment=payment,
                status=HistoryStatus.PAID if payment.confirmed else HistoryStatus.PENDING,
            ))

    entries.sort(key=lambda e: (e.year, e.month, e.ordinal or 0), reverse=True)
    return entries


def filter_students(students: Iterable[Student], query: str) -> List[Student]:
    """Case-insensitive match on name or department, exact substring on room."""
    if not query:
        return list(students)
    needle = query.lower()
    return [
        s for s in students
        if needle in s.name.lower()
        or needle in s.department.lower()
        or query in s.room_number
    ]


def _last_payment_key(student: Student) -> float:
    payment = last_confirmed_payment(student)
    day = parse_calendar_date(payment.date) if payment else None
    return day.toordinal() if day else 0


_SORT_KEYS: dict = {
    SortField.NAME: lambda s: s.name.lower(),
    SortField.DATE: lambda s: parse_calendar_date(s.date_added) or datetime.min.date(),
    SortField.ROOM: lambda s: parse_int(s.room_number),
    SortField.FLOOR: lambda s: parse_int(s.floor_number),
    SortField.AMOUNT: total_confirmed_amount,
    SortField.LAST_PAYMENT_DATE: _last_payment_key,
}


def sort_students(
    students: Iterable[Student],
    field: SortField = SortField.NAME,
    order: SortOrder = SortOrder.ASC,
) -> List[Student]:
    """
    Stable sort by the given field.

    Room and floor numbers that do not start with an integer sort after all
    numeric ones whatever the order; students without a confirmed payment
    sort as the earliest last-payment date.
    """
    key: Callable[[Student], object] = _SORT_KEYS.get(SortField(field), _SORT_KEYS[SortField.NAME])
    reverse = SortOrder(order) == SortOrder.DESC

    keyed = [(key(s), s) for s in students]
    comparable = [pair for pair in keyed if pair[0] is not None]
    unkeyed = [s for k, s in keyed if k is None]

    comparable.sort(key=lambda pair: pair[0], reverse=reverse)
    return [s for _, s in comparable] + unkeyed


def filter_and_sort(
    students: Iterable[Student],
    query: str = "",
    field: SortField = SortField.NAME,
    order: SortOrder = SortOrder.ASC,
) -> List[Student]:
    """What the students page shows: filter first, then sort."""
    return sort_students(filter_students(students, query), field, order)
