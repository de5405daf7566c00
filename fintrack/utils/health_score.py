from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class HealthScoreWeights:
    """Caps and multipliers of the weighted health score. Tuning values."""

    savings_cap: float = 0.5
    savings_weight: float = 80
    debt_weight: float = 25
    investment_cap: float = 0.3
    investment_weight: float = 50
    discipline_weight: float = 20

    @classmethod
    def from_overrides(cls, overrides: Optional[Dict[str, float]] = None) -> "HealthScoreWeights":
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in (overrides or {}).items() if k in known})


@dataclass
class HealthScore:
    score: int
    label: str
    savings_rate: float
    debt_ratio: float
    investment_ratio: float
    budget_discipline: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def score_from_ratios(
    savings_rate: float,
    debt_ratio: float,
    investment_ratio: float,
    budget_discipline: float,
    weights: HealthScoreWeights = HealthScoreWeights(),
) -> int:
    raw = (
        min(savings_rate, weights.savings_cap) * weights.savings_weight
        + (1 - min(debt_ratio, 1)) * weights.debt_weight
        + min(investment_ratio, weights.investment_cap) * weights.investment_weight
        + budget_discipline * weights.discipline_weight
    )
    clamped = max(0.0, min(100.0, raw))
    return int(Decimal(str(clamped)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def score_label(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Warning"
    return "Critical"


def calculate_health_score(
    total_income: float,
    total_expenses: float,
    total_investment: float = 0.0,
    emi: float = 0.0,
    money_borrowed: float = 0.0,
    weights: HealthScoreWeights = HealthScoreWeights(),
) -> HealthScore:
    if total_income == 0:
        return HealthScore(0, score_label(0), 0.0, 0.0, 0.0, 0.0)

    savings_rate = (total_income - total_expenses) / total_income
    debt_ratio = (emi + money_borrowed) / total_income
    investment_ratio = total_investment / total_income
    budget_discipline = 1.0 if total_expenses <= total_income else total_income / total_expenses

    score = score_from_ratios(savings_rate, debt_ratio, investment_ratio, budget_discipline, weights)
    return HealthScore(
        score=score,
        label=score_label(score),
        savings_rate=round(savings_rate, 4),
        debt_ratio=round(debt_ratio, 4),
        investment_ratio=round(investment_ratio, 4),
        budget_discipline=round(budget_discipline, 4),
    )
