import datetime as dt

import pytest

from utils.dates import format_typst_datetime, normalize_date, parse_human_date

TODAY = dt.date(2024, 3, 10)


def test_format_typst_datetime_zero_pads():
    assert format_typst_datetime(dt.date(2024, 3, 7)) == "datetime(year: 2024, month: 03, day: 07)"
    assert format_typst_datetime(dt.date(987, 12, 25)) == "datetime(year: 0987, month: 12, day: 25)"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2024-03-07", dt.date(2024, 3, 7)),
        ("  2024-03-07 ", dt.date(2024, 3, 7)),
        ("2024-03-07T23:15:00", dt.date(2024, 3, 7)),
        ("2024/03/07", dt.date(2024, 3, 7)),
        ("2024.03.07", dt.date(2024, 3, 7)),
        ("03/07/2024", dt.date(2024, 3, 7)),
        ("03-07-2024", dt.date(2024, 3, 7)),
        ("March 7, 2024", dt.date(2024, 3, 7)),
        ("Mar 7 2024", dt.date(2024, 3, 7)),
        ("7 March 2024", dt.date(2024, 3, 7)),
        ("today", TODAY),
        ("Yesterday", dt.date(2024, 3, 9)),
        ("tomorrow", dt.date(2024, 3, 11)),
        ("3 days ago", dt.date(2024, 3, 7)),
        ("1 week ago", dt.date(2024, 3, 3)),
        ("in 2 days", dt.date(2024, 3, 12)),
    ],
)
def test_parse_human_date(text, expected):
    assert parse_human_date(text, today=TODAY) == expected


def test_parse_human_date_converts_aware_times_to_local():
    aware = dt.datetime(2024, 3, 7, 12, 0, tzinfo=dt.timezone.utc)
    expected = aware.astimezone().date()

    assert parse_human_date("2024-03-07T12:00:00Z", today=TODAY) == expected
    assert parse_human_date("Thu, 07 Mar 2024 12:00:00 +0000", today=TODAY) == expected
    assert parse_human_date(str(int(aware.timestamp())), today=TODAY) == expected


@pytest.mark.parametrize("text", ["", "not a date", "2024-13-45", "someday"])
def test_parse_human_date_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_human_date(text, today=TODAY)


def test_normalize_date_falls_back_to_today(capsys):
    assert normalize_date("not a date", today=TODAY) == TODAY
    assert "failed to parse date!" in capsys.readouterr().err


def test_normalize_date_is_quiet_on_success(capsys):
    assert normalize_date("2024-03-07", today=TODAY) == dt.date(2024, 3, 7)
    assert capsys.readouterr().err == ""
