from datetime import date, datetime

import pytest

from errors import FormValidationError
from forms import parse_amount, parse_date


@pytest.mark.parametrize("value, expected", [("12.5", 12.5), (3, 3.0), (" 40 ", 40.0)])
def test_parse_amount_accepts_numbers(value, expected):
    assert parse_amount(value, "Amount") == expected


@pytest.mark.parametrize("value", [None, "", "  ", "abc", "nan", "inf", -1, 0, True])
def test_parse_amount_rejects(value):
    with pytest.raises(FormValidationError):
        parse_amount(value, "Amount")


def test_parse_amount_allow_zero():
    assert parse_amount("0", "Interest rate", allow_zero=True) == 0.0
    with pytest.raises(FormValidationError):
        parse_amount(-0.5, "Interest rate", allow_zero=True)


def test_parse_date():
    default = date(2024, 3, 15)

    assert parse_date(None, default) == default
    assert parse_date("", default) == default
    assert parse_date("2024-01-02", default) == date(2024, 1, 2)
    assert parse_date("2024-01-02T10:30:00", default) == date(2024, 1, 2)
    assert parse_date(datetime(2024, 5, 6, 7, 8), default) == date(2024, 5, 6)
    with pytest.raises(FormValidationError):
        parse_date("yesterday", default)
