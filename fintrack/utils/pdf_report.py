import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from fintrack.utils.analyzer import CategoryTotal, FinanceAnalyzer, MonthlyTotals
from fintrack.utils.currency import group_digits
from fintrack.utils.dates import DateRange

logger = logging.getLogger(__name__)

BRAND_COLOR = (124, 58, 237)
STRIPE_COLOR = (243, 240, 255)
TEXT_COLOR = (30, 30, 30)


@dataclass
class ReportData:
    total_income: float
    total_expenses: float
    net_profit: float
    savings_rate: float
    currency: str
    top_categories: List[CategoryTotal] = field(default_factory=list)
    monthly_data: List[MonthlyTotals] = field(default_factory=list)
    period_label: Optional[str] = None
    generated_on: date = field(default_factory=date.today)


def build_report_data(
    analyzer: FinanceAnalyzer,
    transactions: List[Dict[str, Any]],
    currency: str,
    date_range: Optional[DateRange] = None,
    top_n: int = 5,
) -> ReportData:
    summary = analyzer.summarize(transactions, date_range)
    return ReportData(
        total_income=summary.total_income,
        total_expenses=summary.total_expenses,
        net_profit=summary.net_savings,
        savings_rate=summary.savings_rate,
        currency=currency,
        top_categories=analyzer.category_breakdown(transactions, "expense", date_range)[:top_n],
        monthly_data=analyzer.monthly_totals(transactions, date_range),
        period_label=date_range.label() if date_range else None,
    )


def report_filename(today: Optional[date] = None) -> str:
    return f"fintrack-report-{(today or date.today()).strftime('%Y-%m')}.pdf"


def profit_loss_filename(today: Optional[date] = None) -> str:
    return f"profit-loss-{(today or date.today()).strftime('%Y-%m')}.csv"


def _safe(text: str) -> str:
    # Core PDF fonts only cover latin-1
    return str(text).encode("latin-1", "replace").decode("latin-1")


def _money(amount: float, currency: str) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency} {group_digits(amount, currency, places=2)}"


class FinancialReportPDF(FPDF):
    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "", 8)
        self.set_text_color(130)
        self.cell(0, 10, f"FinTrack Financial Report - Page {self.page_no()} of {{nb}}", align="C")


def _section_title(pdf: FPDF, title: str) -> None:
    pdf.set_font("Helvetica", "B", 16)
    pdf.set_text_color(*TEXT_COLOR)
    pdf.cell(0, 12, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def _table(pdf: FPDF, headings: Sequence[str], rows: List[Sequence[str]], widths: Sequence[float]) -> None:
    pdf.set_font("Helvetica", "B", 10)
    pdf.set_fill_color(*BRAND_COLOR)
    pdf.set_text_color(255)
    for heading, width in zip(headings, widths):
        pdf.cell(width, 8, heading, border=1, fill=True)
    pdf.ln()

    pdf.set_font("Helvetica", "", 10)
    pdf.set_text_color(*TEXT_COLOR)
    pdf.set_fill_color(*STRIPE_COLOR)
    for index, row in enumerate(rows):
        for value, width in zip(row, widths):
            pdf.cell(width, 8, _safe(value), border=1, fill=index % 2 == 1)
        pdf.ln()
    pdf.ln(6)


def generate_financial_pdf(data: ReportData) -> bytes:
    pdf = FinancialReportPDF()
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    # Header
    pdf.set_fill_color(*BRAND_COLOR)
    pdf.rect(0, 0, pdf.w, 35, style="F")
    pdf.set_text_color(255)
    pdf.set_xy(14, 8)
    pdf.set_font("Helvetica", "B", 22)
    pdf.cell(0, 10, "FinTrack")
    pdf.set_xy(14, 21)
    pdf.set_font("Helvetica", "", 10)
    subtitle = "Financial Report"
    if data.period_label:
        subtitle = f"{subtitle} - {data.period_label}"
    pdf.cell(0, 8, _safe(subtitle))
    pdf.set_xy(14, 21)
    pdf.cell(pdf.w - 28, 8, f"Generated: {data.generated_on.strftime('%B %d, %Y')}", align="R")

    pdf.set_xy(pdf.l_margin, 45)

    # Summary
    _section_title(pdf, "Financial Summary")
    summary_items = [
        ("Total Income", _money(data.total_income, data.currency)),
        ("Total Expenses", _money(data.total_expenses, data.currency)),
        ("Net Profit", _money(data.net_profit, data.currency)),
        ("Savings Rate", f"{data.savings_rate * 100:.1f}%"),
    ]
    label_width = (pdf.w - pdf.l_margin - pdf.r_margin) / 2
    pdf.set_text_color(*TEXT_COLOR)
    for label, value in summary_items:
        pdf.set_font("Helvetica", "", 11)
        pdf.cell(label_width, 8, label)
        pdf.set_font("Helvetica", "B", 11)
        pdf.cell(label_width, 8, value, align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(8)

    # Top categories
    _section_title(pdf, "Top Spending Categories")
    if data.top_categories:
        _table(
            pdf,
            ["Category", "Amount", "% of Total"],
            [
                (c.category, _money(c.amount, data.currency), f"{c.percentage:.1f}%")
                for c in data.top_categories
            ],
            [80, 60, 42],
        )
    else:
        pdf.set_font("Helvetica", "", 11)
        pdf.cell(0, 8, "No expenses in this period", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(6)

    # Monthly breakdown
    if pdf.get_y() > 240:
        pdf.add_page()
    _section_title(pdf, "Monthly Breakdown")
    if data.monthly_data:
        _table(
            pdf,
            ["Month", "Income", "Expenses", "Net"],
            [
                (
                    m.month,
                    _money(m.income, data.currency),
                    _money(m.expenses, data.currency),
                    _money(m.income - m.expenses, data.currency),
                )
                for m in data.monthly_data
            ],
            [40, 48, 48, 46],
        )

    logger.info(f"Rendered financial report with {pdf.page_no()} page(s)")
    return bytes(pdf.output())


def generate_profit_loss_csv(monthly: List[MonthlyTotals]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Month", "Revenue", "Expenses", "Net Profit"])
    for m in monthly:
        writer.writerow([m.month, m.income, m.expenses, round(m.income - m.expenses, 2)])
    return output.getvalue()
