"""
Analytics Router
Derived metrics over the user's records. Every endpoint takes an optional
``date_from``/``date_to`` window and falls back to the user's selected
date range.
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from fintrack.core.config import settings
from fintrack.core.preferences import PreferenceStore
from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.routers.settings import get_preferences
from fintrack.utils.analyzer import FinanceAnalyzer
from fintrack.utils.budget import calculate_all_budget_utilizations
from fintrack.utils.dates import DateRange, last_n_months_range, parse_window
from fintrack.utils.emi import emi_overview
from fintrack.utils.health_score import HealthScoreWeights

router = APIRouter()
finance_analyzer = FinanceAnalyzer(HealthScoreWeights.from_overrides(settings.HEALTH_SCORE_WEIGHTS))


def _window(date_from: Optional[str], date_to: Optional[str], prefs: PreferenceStore) -> DateRange:
    return parse_window(date_from, date_to) or prefs.date_range


def _transactions(user_id: str, window: DateRange) -> List[Dict]:
    return dynamo.list_items(
        "transactions", user_id, date_from=window.start.isoformat(), date_to=window.end.isoformat()
    )


@router.get("/summary")
def get_summary(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    summary = finance_analyzer.summarize(_transactions(user_id, window), window)
    return {
        "date_range": window.to_dict(),
        "currency": prefs.currency,
        "summary": summary.to_dict(),
        "formatted": {
            "total_income": prefs.format_amount(summary.total_income),
            "total_expenses": prefs.format_amount(summary.total_expenses),
            "net_savings": prefs.format_amount(summary.net_savings),
        },
    }


@router.get("/categories")
def get_categories(
    type: Optional[str] = "expense",
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    breakdown = finance_analyzer.category_breakdown(_transactions(user_id, window), type, window)
    return {"date_range": window.to_dict(), "categories": [c.to_dict() for c in breakdown]}


@router.get("/trends")
def get_trends(
    months: int = Query(6, ge=1, le=36),
    user_id: str = Depends(get_current_user_id),
) -> Dict:
    window = last_n_months_range(months)
    trend = finance_analyzer.monthly_totals(_transactions(user_id, window), window, include_empty=True)
    return {"date_range": window.to_dict(), "months": [m.to_dict() for m in trend]}


@router.get("/health")
def get_health_score(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    lending = dynamo.list_items("lending_transactions", user_id)
    score = finance_analyzer.health_score(_transactions(user_id, window), lending, window)
    return score.to_dict()


@router.get("/budgets")
def get_budget_utilization(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    budgets = dynamo.list_items("budgets", user_id)
    utilizations = calculate_all_budget_utilizations(budgets, _transactions(user_id, window), window)
    return {"date_range": window.to_dict(), "budgets": [u.to_dict() for u in utilizations]}


@router.get("/investments")
def get_investments(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    return finance_analyzer.investment_breakdown(_transactions(user_id, window), window)


@router.get("/lending")
def get_lending(user_id: str = Depends(get_current_user_id)) -> Dict:
    # Outstanding balances span all time, not the selected window
    lending = dynamo.list_items("lending_transactions", user_id)
    return {
        "summary": finance_analyzer.lending_summary(lending),
        "people": [p.to_dict() for p in finance_analyzer.lending_by_person(lending)],
    }


@router.get("/emi")
def get_emi_overview(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    loans = dynamo.list_items("loans", user_id)
    return emi_overview(loans, _transactions(user_id, window), window)


@router.get("/recurring")
def get_recurring(user_id: str = Depends(get_current_user_id)) -> Dict:
    payments = dynamo.list_items("recurring_payments", user_id)
    return finance_analyzer.recurring_overview(payments)


@router.get("/dashboard")
def get_dashboard(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
) -> Dict:
    window = _window(date_from, date_to, prefs)
    snapshot = finance_analyzer.snapshot(
        _transactions(user_id, window),
        dynamo.list_items("budgets", user_id),
        dynamo.list_items("lending_transactions", user_id),
        window,
    )
    return dict(snapshot.to_dict(), date_range=window.to_dict(), preferences=prefs.to_dict())
