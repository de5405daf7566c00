from datetime import date, datetime

import pytest

from fintrack.core.exceptions import MalformedInputError
from fintrack.utils.dates import (
    DateRange,
    date_range_presets,
    filter_by_date_range,
    last_n_months_range,
    month_range,
    parse_month,
    parse_window,
    to_date,
)


def test_to_date_accepts_timestamps():
    assert to_date("2025-11-30") == date(2025, 11, 30)
    assert to_date("2025-11-30T10:00:00Z") == date(2025, 11, 30)
    assert to_date(datetime(2025, 1, 2, 3, 4)) == date(2025, 1, 2)


def test_month_range_handles_leap_year():
    assert parse_month("2024-02") == DateRange(date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(date(2025, 4, 17)).end == date(2025, 4, 30)


def test_last_n_months_crosses_year():
    window = last_n_months_range(3, date(2025, 1, 15))
    assert window == DateRange(date(2024, 11, 1), date(2025, 1, 31))


def test_contains_is_inclusive():
    window = DateRange(date(2025, 11, 1), date(2025, 11, 30))
    assert window.contains("2025-11-01")
    assert window.contains("2025-11-30T23:59:00")
    assert not window.contains("2025-12-01")


def test_labels():
    assert month_range(date(2025, 1, 9)).label() == "January 2025"
    assert DateRange(date(2025, 1, 1), date(2025, 3, 31)).label() == "Jan 01, 2025 - Mar 31, 2025"


def test_presets():
    presets = {p["label"]: p["range"] for p in date_range_presets(date(2025, 3, 10))}
    assert list(presets) == ["This Month", "Last Month", "Last 3 Months", "Last 6 Months", "This Year"]
    assert presets["Last Month"] == DateRange(date(2025, 2, 1), date(2025, 2, 28))
    assert presets["Last 6 Months"].start == date(2024, 10, 1)
    assert presets["This Year"].end == date(2025, 12, 31)


def test_filter_skips_undated_items():
    items = [{"date": "2025-11-02"}, {"date": "2025-10-02"}, {"amount": 1}]
    window = parse_month("2025-11")
    assert filter_by_date_range(items, window) == [{"date": "2025-11-02"}]


def test_parse_window():
    assert parse_window(None, None) is None
    assert parse_window("2025-11-01", "2025-11-30") == parse_month("2025-11")


@pytest.mark.parametrize(
    "date_from,date_to",
    [("2025-11-01", None), ("2025-12-01", "2025-11-01"), ("2025/11/01", "2025/11/30")],
)
def test_parse_window_rejects_bad_input(date_from, date_to):
    with pytest.raises(MalformedInputError):
        parse_window(date_from, date_to)
