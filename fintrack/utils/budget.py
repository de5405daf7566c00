from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from fintrack.utils.dates import DateRange

EXCEEDED_THRESHOLD = 90.0
WARNING_THRESHOLD = 70.0


@dataclass
class BudgetUtilization:
    category: str
    budget_limit: float
    spent: float
    remaining: float
    utilization_percent: float
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def budget_status(percent: float) -> str:
    if percent > EXCEEDED_THRESHOLD:
        return "exceeded"
    if percent > WARNING_THRESHOLD:
        return "warning"
    return "on-track"


def calculate_budget_utilization(category: str, budget_limit: float, spent: float) -> BudgetUtilization:
    percent = (spent / budget_limit) * 100 if budget_limit > 0 else 0.0
    return BudgetUtilization(
        category=category,
        budget_limit=budget_limit,
        spent=round(spent, 2),
        remaining=round(budget_limit - spent, 2),
        utilization_percent=round(percent, 2),
        status=budget_status(percent),
    )


def calculate_all_budget_utilizations(
    budgets: List[Dict[str, Any]],
    transactions: List[Dict[str, Any]],
    date_range: Optional[DateRange] = None,
) -> List[BudgetUtilization]:
    spent_by_category: Dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.get("type") != "expense":
            continue
        if date_range and not date_range.contains(t["date"]):
            continue
        spent_by_category[t["category"]] += float(t.get("amount", 0))

    return [
        calculate_budget_utilization(
            budget["category"],
            float(budget["monthly_limit"]),
            spent_by_category.get(budget["category"], 0.0),
        )
        for budget in budgets
    ]
