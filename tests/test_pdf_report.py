import csv
import io
from datetime import date

from fintrack.utils.analyzer import FinanceAnalyzer
from fintrack.utils.dates import DateRange
from fintrack.utils.pdf_report import (
    ReportData,
    build_report_data,
    generate_financial_pdf,
    generate_profit_loss_csv,
    profit_loss_filename,
    report_filename,
)

sample_transactions = [
    {"type": "income", "category": "Salary", "amount": 40000.0, "date": "2025-10-01"},
    {"type": "expense", "category": "Rent", "amount": 10000.0, "date": "2025-10-02"},
    {"type": "income", "category": "Salary", "amount": 50000.0, "date": "2025-11-01"},
    {"type": "expense", "category": "Rent", "amount": 12000.0, "date": "2025-11-02"},
    {"type": "expense", "category": "Café ₹ treats", "amount": 800.0, "date": "2025-11-06"},
]


def test_filenames_carry_year_month():
    assert report_filename(date(2025, 11, 3)) == "fintrack-report-2025-11.pdf"
    assert profit_loss_filename(date(2025, 1, 31)) == "profit-loss-2025-01.csv"


def test_build_report_data():
    window = DateRange(date(2025, 10, 1), date(2025, 11, 30))
    data = build_report_data(FinanceAnalyzer(), sample_transactions, "INR", window, top_n=1)
    assert data.total_income == 90000.0
    assert data.net_profit == 67200.0
    assert [c.category for c in data.top_categories] == ["Rent"]
    assert [m.month for m in data.monthly_data] == ["Oct 2025", "Nov 2025"]
    assert data.period_label == "Oct 01, 2025 - Nov 30, 2025"


def test_generate_pdf_returns_pdf_bytes():
    data = build_report_data(FinanceAnalyzer(), sample_transactions, "INR")
    content = generate_financial_pdf(data)
    assert isinstance(content, bytes)
    assert content.startswith(b"%PDF")


def test_generate_pdf_without_expenses():
    data = ReportData(total_income=0, total_expenses=0, net_profit=0, savings_rate=0, currency="USD")
    assert generate_financial_pdf(data).startswith(b"%PDF")


def test_profit_loss_csv():
    monthly = FinanceAnalyzer().monthly_totals(sample_transactions)
    rows = list(csv.reader(io.StringIO(generate_profit_loss_csv(monthly))))
    assert rows[0] == ["Month", "Revenue", "Expenses", "Net Profit"]
    assert rows[1] == ["Oct 2025", "40000.0", "10000.0", "30000.0"]
    assert rows[2] == ["Nov 2025", "50000.0", "12800.0", "37200.0"]
