# tests/test_timeparse.py
from datetime import date, datetime, time

import pytest

from scheduling.errors import ValidationError
from scheduling.timeparse import parse_date, parse_hhmm, parse_instant, require_provider_id


@pytest.mark.parametrize("value", [
    "2024-06-03",
    " 2024-06-03 ",
    "2024-06-03T09:30:00",
    "2024-06-03T09:30:00Z",
    date(2024, 6, 3),
    datetime(2024, 6, 3, 23, 59),
])
def test_parse_date_accepts_dates_and_instants(value):
    assert parse_date(value) == date(2024, 6, 3)


@pytest.mark.parametrize("value", [
    "2024-06-03garbage",
    "2024-06-03 extra",
    "2024-06-03Tnoon",
    "03/06/2024",
    "2024-13-01",
    "",
    None,
])
def test_parse_date_rejects_junk(value):
    with pytest.raises(ValidationError):
        parse_date(value, "startDate")


def test_parse_instant_drops_offsets():
    assert parse_instant("2024-06-03T09:00:00Z") == datetime(2024, 6, 3, 9, 0)
    assert parse_instant("2024-06-03T09:00:00+05:45") == datetime(2024, 6, 3, 9, 0)


def test_parse_hhmm_and_provider():
    assert parse_hhmm("07:05") == time(7, 5)
    with pytest.raises(ValidationError):
        parse_hhmm("7:05")
    assert require_provider_id(" doc-1.a ") == "doc-1.a"
    with pytest.raises(ValidationError):
        require_provider_id("-leading-dash")
