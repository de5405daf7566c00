"""
Loan and EMI math.

EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r the monthly rate.
"""
from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from fintrack.utils.dates import DateRange, to_date


@dataclass
class EMIScheduleItem:
    month: int
    emi_amount: float
    principal_component: float
    interest_component: float
    outstanding_balance: float
    payment_date: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UpcomingEMI:
    loan_id: str
    loan_name: str
    amount: float
    due_date: str
    is_paid: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_emi(principal: float, annual_rate: float, tenure_months: int) -> float:
    if principal <= 0 or tenure_months <= 0:
        return 0.0
    if annual_rate == 0:
        return round(principal / tenure_months, 2)

    monthly_rate = annual_rate / 12 / 100
    factor = (1 + monthly_rate) ** tenure_months
    return round(principal * monthly_rate * factor / (factor - 1), 2)


def calculate_total_interest(principal: float, emi: float, tenure_months: int) -> float:
    return round(emi * tenure_months - principal, 2)


def generate_emi_schedule(loan: Dict[str, Any]) -> List[EMIScheduleItem]:
    """Amortization table, one row per month of the loan's tenure."""
    monthly_rate = float(loan["interest_rate"]) / 12 / 100
    outstanding = float(loan["principal"])
    emi = float(loan["monthly_emi"])
    start = to_date(loan["start_date"])

    schedule = []
    for month in range(1, int(loan["tenure_months"]) + 1):
        interest = outstanding * monthly_rate
        principal_part = emi - interest
        outstanding = max(0.0, outstanding - principal_part)
        schedule.append(
            EMIScheduleItem(
                month=month,
                emi_amount=emi,
                principal_component=round(principal_part, 2),
                interest_component=round(interest, 2),
                outstanding_balance=round(outstanding, 2),
                payment_date=(start + relativedelta(months=month - 1)).isoformat(),
            )
        )
    return schedule


def _due_date_in_month(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def upcoming_emis(
    loans: List[Dict[str, Any]],
    transactions: List[Dict[str, Any]],
    date_range: DateRange,
) -> List[UpcomingEMI]:
    """
    Next due date for every active loan, counted from the start of the
    window, and whether a payment linked to the loan falls inside it.
    """
    items = []
    for loan in loans:
        if loan.get("status", "active") != "active":
            continue

        start_day = to_date(loan["start_date"]).day
        due = _due_date_in_month(date_range.start.year, date_range.start.month, start_day)
        if due < date_range.start:
            due = due + relativedelta(months=1)

        is_paid = any(
            t.get("loan_id") == loan["id"]
            and t.get("type") in ("expense", "emi")
            and date_range.contains(t["date"])
            for t in transactions
        )
        items.append(
            UpcomingEMI(
                loan_id=loan["id"],
                loan_name=loan["name"],
                amount=float(loan["monthly_emi"]),
                due_date=due.isoformat(),
                is_paid=is_paid,
            )
        )
    return sorted(items, key=lambda item: item.due_date)


def emi_overview(
    loans: List[Dict[str, Any]],
    transactions: List[Dict[str, Any]],
    date_range: DateRange,
) -> Dict[str, Any]:
    active = [loan for loan in loans if loan.get("status", "active") == "active"]
    upcoming = upcoming_emis(active, transactions, date_range)
    paid_this_period = sum(
        float(t.get("amount", 0))
        for t in transactions
        if t.get("loan_id") and t.get("type") in ("expense", "emi") and date_range.contains(t["date"])
    )
    return {
        "total_monthly_emi": round(sum(float(loan["monthly_emi"]) for loan in active), 2),
        "total_paid": round(paid_this_period, 2),
        "total_pending": round(sum(item.amount for item in upcoming if not item.is_paid), 2),
        "active_loans_count": len(active),
        "upcoming_emis": [item.to_dict() for item in upcoming],
    }


def loan_payment_stats(loan: Dict[str, Any], payments: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Repayment progress of a single loan from its recorded payments."""
    ordered = sorted(payments, key=lambda p: to_date(p["date"]))
    total_paid = round(sum(float(p.get("amount", 0)) for p in ordered), 2)
    total_payable = round(float(loan["monthly_emi"]) * int(loan["tenure_months"]), 2)
    last_payment: Optional[str] = ordered[-1]["date"] if ordered else None
    return {
        "loan_id": loan["id"],
        "total_paid": total_paid,
        "emi_count": len(ordered),
        "last_payment_date": last_payment,
        "total_payable": total_payable,
        "remaining_payable": round(max(0.0, total_payable - total_paid), 2),
        "total_interest": calculate_total_interest(
            float(loan["principal"]), float(loan["monthly_emi"]), int(loan["tenure_months"])
        ),
    }
