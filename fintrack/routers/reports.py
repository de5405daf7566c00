import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from fintrack.core.config import settings
from fintrack.core.preferences import PreferenceStore
from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.routers.settings import get_preferences
from fintrack.utils import pdf_report
from fintrack.utils.analyzer import FinanceAnalyzer
from fintrack.utils.dates import last_n_months_range, parse_window
from fintrack.utils.health_score import HealthScoreWeights

router = APIRouter()
logger = logging.getLogger(__name__)
finance_analyzer = FinanceAnalyzer(HealthScoreWeights.from_overrides(settings.HEALTH_SCORE_WEIGHTS))


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/pdf")
def download_financial_report(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
):
    """
    Financial report PDF for the given window (default: the user's selected
    date range), named fintrack-report-YYYY-MM.pdf.
    """
    window = parse_window(date_from, date_to) or prefs.date_range
    logger.info(f"Generating financial report for user_id: {user_id}, window: {window.label()}")

    transactions = dynamo.list_items(
        "transactions", user_id, date_from=window.start.isoformat(), date_to=window.end.isoformat()
    )
    if not transactions:
        raise HTTPException(status_code=404, detail="No transactions found for this period.")

    data = pdf_report.build_report_data(finance_analyzer, transactions, prefs.currency, window)
    content = pdf_report.generate_financial_pdf(data)
    return Response(
        content=content,
        media_type="application/pdf",
        headers=_attachment(pdf_report.report_filename()),
    )


@router.get("/csv")
def download_profit_loss(
    months: int = Query(6, ge=1, le=36),
    user_id: str = Depends(get_current_user_id),
):
    """Month-by-month profit and loss for the last ``months`` months."""
    window = last_n_months_range(months)
    transactions = dynamo.list_items(
        "transactions", user_id, date_from=window.start.isoformat(), date_to=window.end.isoformat()
    )
    monthly = finance_analyzer.monthly_totals(transactions, window, include_empty=True)
    return Response(
        content=pdf_report.generate_profit_loss_csv(monthly),
        media_type="text/csv",
        headers=_attachment(pdf_report.profit_loss_filename()),
    )
