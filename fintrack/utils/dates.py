import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from dateutil.relativedelta import relativedelta

from fintrack.core.exceptions import MalformedInputError

DateLike = Union[str, date, datetime]


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def contains(self, value: DateLike) -> bool:
        return self.start <= to_date(value) <= self.end

    def label(self) -> str:
        if (self.start.year, self.start.month) == (self.end.year, self.end.month):
            return self.start.strftime("%B %Y")
        return f"{self.start.strftime('%b %d, %Y')} - {self.end.strftime('%b %d, %Y')}"

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}


def to_date(value: DateLike) -> date:
    """Accept 'YYYY-MM-DD', full ISO timestamps, dates and datetimes."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text).date()


def iso_date(value: DateLike) -> str:
    """Normalise a date-like value to 'YYYY-MM-DD'. Raises ValueError on junk."""
    return to_date(value).isoformat()


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def month_range(day: Optional[date] = None) -> DateRange:
    day = day or date.today()
    return DateRange(start_of_month(day), end_of_month(day))


def last_n_months_range(n: int, today: Optional[date] = None) -> DateRange:
    today = today or date.today()
    return DateRange(start_of_month(today - relativedelta(months=n - 1)), end_of_month(today))


def parse_month(month: str) -> DateRange:
    """'2025-11' -> DateRange(2025-11-01, 2025-11-30)"""
    return month_range(datetime.strptime(month, "%Y-%m").date())


def date_range_presets(today: Optional[date] = None) -> List[Dict[str, object]]:
    today = today or date.today()
    last_month = today - relativedelta(months=1)
    return [
        {"label": "This Month", "range": month_range(today)},
        {"label": "Last Month", "range": month_range(last_month)},
        {"label": "Last 3 Months", "range": last_n_months_range(3, today)},
        {"label": "Last 6 Months", "range": last_n_months_range(6, today)},
        {"label": "This Year", "range": DateRange(date(today.year, 1, 1), date(today.year, 12, 31))},
    ]


def filter_by_date_range(items: List[Dict], date_range: DateRange, field: str = "date") -> List[Dict]:
    return [item for item in items if item.get(field) and date_range.contains(item[field])]


def parse_window(date_from: Optional[str], date_to: Optional[str]) -> Optional[DateRange]:
    """
    Query-string window. Both bounds or neither; None means "not given".
    """
    if not date_from and not date_to:
        return None
    if not date_from or not date_to:
        raise MalformedInputError("Both date_from and date_to are required")
    try:
        start, end = to_date(date_from), to_date(date_to)
    except ValueError:
        raise MalformedInputError("Dates must be ISO formatted (YYYY-MM-DD)")
    if start > end:
        raise MalformedInputError("date_from must not be after date_to")
    return DateRange(start, end)
