"""Unit tests for time, number and receipt helpers."""

from datetime import date, datetime

import pytest

from dormpay.utils.numbers import parse_int
from dormpay.utils.receipts import generate_receipt_number
from dormpay.utils.time import add_months, iter_months, parse_calendar_date


def test_receipt_number_format():
    assert generate_receipt_number(datetime(2024, 3, 20, 10, 30, 0, 123000)) == "REC-20240320123"
    assert generate_receipt_number(datetime(2024, 12, 31, 23, 59, 59, 7000)) == "REC-20241231007"


def test_receipt_number_defaults_to_now():
    number = generate_receipt_number()

    assert number.startswith("REC-")
    assert len(number) == len("REC-") + 8 + 3


@pytest.mark.parametrize("value,expected", [
    ("12", 12),
    ("101B", 101),
    (" 7 ", 7),
    ("annex", None),
    ("", None),
    (None, None),
    (5, 5),
])
def test_parse_int(value, expected):
    assert parse_int(value) == expected


def test_parse_calendar_date():
    assert parse_calendar_date("2024-01-15") == date(2024, 1, 15)
    assert parse_calendar_date("2024-01-15T22:10:00.000Z") == date(2024, 1, 15)
    assert parse_calendar_date("not a date") is None
    assert parse_calendar_date(None) is None


def test_add_months_wraps_year():
    assert add_months(2023, 12) == (2024, 1)
    assert add_months(2024, 1, 13) == (2025, 2)


def test_iter_months_inclusive():
    assert list(iter_months(date(2023, 11, 30), date(2024, 2, 1))) == [
        (2023, 11), (2023, 12), (2024, 1), (2024, 2),
    ]
