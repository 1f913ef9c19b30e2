"""Centralized Enum Definitions"""

import enum


class StudentStatus(str, enum.Enum):
    """Whether a student sits in the active or the soft-deleted view"""
    ACTIVE = "active"
    DELETED = "deleted"


class SortField(str, enum.Enum):
    """Student list sort keys - values match the dashboard's sort selector"""
    NAME = "name"
    DATE = "date"
    ROOM = "room"
    FLOOR = "floor"
    AMOUNT = "amount"
    LAST_PAYMENT_DATE = "lastPaymentDate"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class HistoryStatus(str, enum.Enum):
    """State of one month in a student's payment history"""
    PAID = "paid"
    PENDING = "pending"
    MISSED = "missed"
