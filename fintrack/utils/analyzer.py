from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta

from fintrack.utils.budget import BudgetUtilization, calculate_all_budget_utilizations
from fintrack.utils.dates import DateRange, filter_by_date_range, to_date
from fintrack.utils.health_score import HealthScore, HealthScoreWeights, calculate_health_score

INVESTMENT_CATEGORIES = (
    "Mutual Funds",
    "Stocks",
    "Insurance",
    "Chit Funds",
    "Gold",
    "Crypto",
    "Policy",
    "Investment",
)

INVESTMENT_RISK_LEVELS = {
    "Mutual Funds": "Moderate",
    "Stocks": "High",
    "Insurance": "Low",
    "Chit Funds": "Very Low",
    "Gold": "Low",
    "Crypto": "Very High",
    "Policy": "Low",
    "Investment": "Moderate",
}

# Occurrences per month, used to normalise recurring payments
FREQUENCY_PER_MONTH = {
    "daily": 30.0,
    "weekly": 52 / 12,
    "biweekly": 26 / 12,
    "monthly": 1.0,
    "quarterly": 1 / 3,
    "yearly": 1 / 12,
}


@dataclass
class FinancialSummary:
    total_income: float
    total_expenses: float
    total_investment: float
    total_emi: float
    net_savings: float
    savings_rate: float
    transaction_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CategoryTotal:
    category: str
    amount: float
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthlyTotals:
    month: str
    income: float = 0.0
    expenses: float = 0.0
    investments: float = 0.0
    savings: float = 0.0
    net: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class InvestmentCategory:
    category: str
    total_amount: float
    transaction_count: int
    risk_level: str
    last_investment: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class LendingBalance:
    name: str
    total_lent: float
    total_borrowed: float
    net_balance: float
    transactions: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DashboardSnapshot:
    summary: FinancialSummary
    health: HealthScore
    categories: List[CategoryTotal] = field(default_factory=list)
    trends: List[MonthlyTotals] = field(default_factory=list)
    budgets: List[BudgetUtilization] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "health": self.health.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "trends": [m.to_dict() for m in self.trends],
            "budgets": [b.to_dict() for b in self.budgets],
        }


def _amount(record: Dict[str, Any]) -> float:
    return float(record.get("amount", 0) or 0)


def is_investment(t: Dict[str, Any]) -> bool:
    if t.get("type") == "investment":
        return True
    return t.get("type") == "expense" and t.get("category") in INVESTMENT_CATEGORIES


def is_emi(t: Dict[str, Any]) -> bool:
    if t.get("type") == "emi":
        return True
    if t.get("type") != "expense":
        return False
    return bool(t.get("loan_id")) or "emi" in (t.get("category") or "").lower()


def calculate_cagr(beginning_value: float, ending_value: float, years: float) -> float:
    """Compound annual growth rate as a percentage with two decimals."""
    if beginning_value <= 0 or years <= 0:
        return 0.0
    cagr = math.pow(ending_value / beginning_value, 1 / years) - 1
    return round(cagr * 100, 2)


def calculate_absolute_returns(invested: float, current_value: float) -> float:
    if invested == 0:
        return 0.0
    return (current_value - invested) / invested * 100


def calculate_unrealized_pl(invested: float, current_value: float) -> float:
    return current_value - invested


class FinanceAnalyzer:
    """
    Derived metrics over a user's records. Every method is a pure function of
    its arguments, so the same instance is shared by routers and the report
    exporter.
    """

    def __init__(self, weights: Optional[HealthScoreWeights] = None) -> None:
        self._weights = weights or HealthScoreWeights()

    @staticmethod
    def _in_window(records: List[Dict[str, Any]], date_range: Optional[DateRange]) -> List[Dict[str, Any]]:
        if date_range is None:
            return list(records)
        return filter_by_date_range(records, date_range)

    def summarize(
        self,
        transactions: List[Dict[str, Any]],
        date_range: Optional[DateRange] = None,
    ) -> FinancialSummary:
        window = self._in_window(transactions, date_range)

        income = sum(_amount(t) for t in window if t.get("type") == "income")
        expenses = sum(_amount(t) for t in window if t.get("type") == "expense")
        investment = sum(_amount(t) for t in window if is_investment(t))
        emi = sum(_amount(t) for t in window if is_emi(t))

        net_savings = income - expenses
        savings_rate = net_savings / income if income > 0 else 0.0

        return FinancialSummary(
            total_income=round(income, 2),
            total_expenses=round(expenses, 2),
            total_investment=round(investment, 2),
            total_emi=round(emi, 2),
            net_savings=round(net_savings, 2),
            savings_rate=round(savings_rate, 4),
            transaction_count=len(window),
        )

    def category_breakdown(
        self,
        transactions: List[Dict[str, Any]],
        type: Optional[str] = "expense",
        date_range: Optional[DateRange] = None,
    ) -> List[CategoryTotal]:
        window = self._in_window(transactions, date_range)
        if type:
            window = [t for t in window if t.get("type") == type]

        totals: Dict[str, float] = defaultdict(float)
        counts: Dict[str, int] = defaultdict(int)
        for t in window:
            category = t.get("category") or "Other"
            totals[category] += _amount(t)
            counts[category] += 1

        grand_total = sum(totals.values())
        breakdown = [
            CategoryTotal(
                category=category,
                amount=round(amount, 2),
                count=counts[category],
                percentage=round(amount / grand_total * 100, 2) if grand_total else 0.0,
            )
            for category, amount in totals.items()
        ]
        return sorted(breakdown, key=lambda c: (-c.amount, c.category))

    def monthly_totals(
        self,
        transactions: List[Dict[str, Any]],
        date_range: Optional[DateRange] = None,
        include_empty: bool = False,
    ) -> List[MonthlyTotals]:
        """
        Cash-flow trend: one row per calendar month, oldest first. With
        ``include_empty`` every month of ``date_range`` gets a row.
        """
        months: Dict[date, MonthlyTotals] = {}
        if include_empty and date_range is not None:
            cursor = date_range.start.replace(day=1)
            while cursor <= date_range.end:
                months[cursor] = MonthlyTotals(month=cursor.strftime("%b %Y"))
                cursor = cursor + relativedelta(months=1)

        for t in self._in_window(transactions, date_range):
            day = to_date(t["date"])
            key = day.replace(day=1)
            row = months.setdefault(key, MonthlyTotals(month=key.strftime("%b %Y")))
            if t.get("type") == "income":
                row.income += _amount(t)
            elif t.get("type") == "expense":
                row.expenses += _amount(t)
            elif t.get("type") == "investment":
                row.investments += _amount(t)

        trend = []
        for key in sorted(months):
            row = months[key]
            row.income = round(row.income, 2)
            row.expenses = round(row.expenses, 2)
            row.investments = round(row.investments, 2)
            row.savings = round(row.income - row.expenses - row.investments, 2)
            row.net = round(row.income - row.expenses, 2)
            trend.append(row)
        return trend

    def investment_breakdown(
        self,
        transactions: List[Dict[str, Any]],
        date_range: Optional[DateRange] = None,
    ) -> Dict[str, Any]:
        grouped: Dict[str, InvestmentCategory] = {}
        for t in self._in_window(transactions, date_range):
            if not is_investment(t):
                continue
            category = t.get("category") if t.get("category") in INVESTMENT_CATEGORIES else "Investment"
            entry = grouped.setdefault(
                category,
                InvestmentCategory(category, 0.0, 0, INVESTMENT_RISK_LEVELS.get(category, "Moderate")),
            )
            entry.total_amount = round(entry.total_amount + _amount(t), 2)
            entry.transaction_count += 1
            if entry.last_investment is None or to_date(t["date"]) > to_date(entry.last_investment):
                entry.last_investment = t["date"]

        categories = sorted(grouped.values(), key=lambda c: -c.total_amount)
        return {
            "total_investment": round(sum(c.total_amount for c in categories), 2),
            "categories": [c.to_dict() for c in categories],
        }

    def lending_summary(self, lending: List[Dict[str, Any]]) -> Dict[str, float]:
        totals: Dict[str, float] = defaultdict(float)
        for t in lending:
            totals[t.get("type")] += _amount(t)
        return {
            "total_lent": round(totals["lent"], 2),
            "total_borrowed": round(totals["borrowed"], 2),
            "pending_recovery": round(totals["lent"] - totals["repaid_by_them"], 2),
            "pending_repayment": round(totals["borrowed"] - totals["repaid_by_me"], 2),
        }

    def lending_by_person(self, lending: List[Dict[str, Any]]) -> List[LendingBalance]:
        """Outstanding balance per counterparty; fully settled people are omitted."""
        people: Dict[str, Dict[str, float]] = {}
        for t in lending:
            person = people.setdefault(t["person_name"], defaultdict(float))
            person[t.get("type")] += _amount(t)
            person["count"] += 1

        balances = []
        for name, data in people.items():
            lent = data["lent"] - data["repaid_by_them"]
            borrowed = data["borrowed"] - data["repaid_by_me"]
            if lent == 0 and borrowed == 0:
                continue
            balances.append(
                LendingBalance(
                    name=name,
                    total_lent=round(lent, 2),
                    total_borrowed=round(borrowed, 2),
                    net_balance=round(lent - borrowed, 2),
                    transactions=int(data["count"]),
                )
            )
        return balances

    def recurring_overview(
        self,
        payments: List[Dict[str, Any]],
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        today = today or date.today()
        active = [p for p in payments if p.get("is_active", True)]

        upcoming, overdue, due_today = [], [], []
        for p in active:
            due = to_date(p["next_due_date"])
            if due == today:
                due_today.append(p)
            elif due < today:
                overdue.append(p)
            else:
                upcoming.append(p)

        monthly_cost = sum(_amount(p) * FREQUENCY_PER_MONTH.get(p.get("frequency"), 1.0) for p in active)
        return {
            "upcoming": sorted(upcoming, key=lambda p: to_date(p["next_due_date"])),
            "due_today": due_today,
            "overdue": sorted(overdue, key=lambda p: to_date(p["next_due_date"])),
            "active_count": len(active),
            "monthly_cost": round(monthly_cost, 2),
        }

    def health_score(
        self,
        transactions: List[Dict[str, Any]],
        lending: Optional[List[Dict[str, Any]]] = None,
        date_range: Optional[DateRange] = None,
    ) -> HealthScore:
        summary = self.summarize(transactions, date_range)
        borrowed = self.lending_summary(self._in_window(lending or [], date_range))["pending_repayment"]
        return calculate_health_score(
            total_income=summary.total_income,
            total_expenses=summary.total_expenses,
            total_investment=summary.total_investment,
            emi=summary.total_emi,
            money_borrowed=max(0.0, borrowed),
            weights=self._weights,
        )

    def snapshot(
        self,
        transactions: List[Dict[str, Any]],
        budgets: Optional[List[Dict[str, Any]]] = None,
        lending: Optional[List[Dict[str, Any]]] = None,
        date_range: Optional[DateRange] = None,
    ) -> DashboardSnapshot:
        return DashboardSnapshot(
            summary=self.summarize(transactions, date_range),
            health=self.health_score(transactions, lending, date_range),
            categories=self.category_breakdown(transactions, "expense", date_range),
            trends=self.monthly_totals(transactions, date_range),
            budgets=calculate_all_budget_utilizations(budgets or [], transactions, date_range),
        )
