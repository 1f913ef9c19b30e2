"""Domain enumerations"""

from dormpay.models.enums import HistoryStatus, SortField, SortOrder, StudentStatus

__all__ = [
    "HistoryStatus",
    "SortField",
    "SortOrder",
    "StudentStatus",
]
