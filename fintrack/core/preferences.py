"""
Per-user UI preferences.

A PreferenceStore is built per request from the user's settings record and
passed explicitly to whatever needs it. It holds the selected currency, the
selected date range and the premium/trial flag; changes are written back
through the ``save`` callable.
"""
import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from fintrack.core.config import settings
from fintrack.core.exceptions import MalformedInputError
from fintrack.utils.currency import (
    SUPPORTED_CURRENCIES,
    format_currency,
    format_currency_compact,
    get_currency_symbol,
)
from fintrack.utils.dates import DateRange, month_range, to_date

logger = logging.getLogger(__name__)

SaveCallback = Callable[[Dict[str, Any]], Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class PreferenceStore:
    def __init__(
        self,
        record: Optional[Dict[str, Any]] = None,
        save: Optional[SaveCallback] = None,
        trial_days: int = settings.TRIAL_DAYS,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        record = record or {}
        self._save = save
        self._now = now
        self.trial_days = trial_days

        self.currency: str = record.get("currency") or settings.DEFAULT_CURRENCY
        if record.get("date_from") and record.get("date_to"):
            self.date_range = DateRange(to_date(record["date_from"]), to_date(record["date_to"]))
        else:
            self.date_range = month_range(self._now().date())
        self._premium_flag: bool = bool(record.get("premium", False))
        self._trial_started_at: Optional[str] = record.get("trial_started_at")

    # Currency

    def set_currency(self, currency: str) -> None:
        code = currency.upper()
        if code not in SUPPORTED_CURRENCIES:
            raise MalformedInputError(f"Unsupported currency: {currency}")
        self.currency = code
        self._persist({"currency": code})

    def format_amount(self, amount: float) -> str:
        return format_currency(amount, self.currency)

    def format_amount_compact(self, amount: float) -> str:
        return format_currency_compact(amount, self.currency)

    def symbol(self) -> str:
        return get_currency_symbol(self.currency)

    # Date range

    def set_date_range(self, start: date, end: date) -> None:
        if start > end:
            raise MalformedInputError("Date range start must not be after its end")
        self.date_range = DateRange(start, end)
        self._persist({"date_from": start.isoformat(), "date_to": end.isoformat()})

    # Premium / trial

    def _trial_elapsed_days(self) -> Optional[float]:
        if not self._trial_started_at:
            return None
        started = _parse_timestamp(self._trial_started_at)
        return (self._now() - started).total_seconds() / 86400

    @property
    def is_trial_active(self) -> bool:
        if self._premium_flag:
            return False
        elapsed = self._trial_elapsed_days()
        return elapsed is not None and elapsed < self.trial_days

    @property
    def trial_days_left(self) -> Optional[int]:
        if not self.is_trial_active:
            return None
        return math.ceil(self.trial_days - self._trial_elapsed_days())

    @property
    def is_premium(self) -> bool:
        return self._premium_flag or self.is_trial_active

    def set_premium(self, value: bool) -> None:
        self._premium_flag = value
        self._persist({"premium": value})

    def start_trial(self, is_trial: bool = True) -> None:
        """
        ``start_trial(True)`` starts the free trial now; ``start_trial(False)``
        converts to paid premium and drops the trial marker.
        """
        if is_trial:
            self._trial_started_at = self._now().isoformat()
            self._persist({"trial_started_at": self._trial_started_at})
            logger.info(f"Trial started, {self.trial_days} days")
        else:
            self._premium_flag = True
            self._trial_started_at = None
            self._persist({"premium": True, "trial_started_at": None})

    def trial_ends_at(self) -> Optional[str]:
        if not self._trial_started_at:
            return None
        return (_parse_timestamp(self._trial_started_at) + timedelta(days=self.trial_days)).isoformat()

    def _persist(self, values: Dict[str, Any]) -> None:
        if self._save is not None:
            self._save(values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "symbol": self.symbol(),
            "date_range": self.date_range.to_dict(),
            "date_range_label": self.date_range.label(),
            "is_premium": self.is_premium,
            "is_trial_active": self.is_trial_active,
            "trial_days_left": self.trial_days_left,
        }


def subscription_status(subscription: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Premium gate from the stored subscription: an active subscription whose
    period has not ended, or a trial whose end is still ahead.
    """
    now = now or _utcnow()
    if not subscription:
        return {"is_premium": False, "is_trial": False, "trial_days_left": None}

    status = subscription.get("status")
    period_end = subscription.get("period_end")
    trial_ends_at = subscription.get("trial_ends_at")

    is_paid = status == "active" and bool(period_end) and _parse_timestamp(period_end) > now
    is_trial = status == "trial" and bool(trial_ends_at) and _parse_timestamp(trial_ends_at) > now

    days_left = None
    if is_trial:
        remaining = (_parse_timestamp(trial_ends_at) - now).total_seconds() / 86400
        days_left = max(0, math.ceil(remaining))

    return {"is_premium": is_paid or is_trial, "is_trial": is_trial, "trial_days_left": days_left}
