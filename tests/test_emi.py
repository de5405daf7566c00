from datetime import date

from fintrack.utils.dates import DateRange
from fintrack.utils.emi import (
    calculate_emi,
    calculate_total_interest,
    emi_overview,
    generate_emi_schedule,
    loan_payment_stats,
    upcoming_emis,
)

november = DateRange(date(2025, 11, 1), date(2025, 11, 30))

home_loan = {
    "id": "loan-home",
    "name": "Home Loan",
    "principal": 100000,
    "interest_rate": 12,
    "tenure_months": 12,
    "monthly_emi": 8884.88,
    "start_date": "2025-01-15",
    "status": "active",
}

car_loan = {
    "id": "loan-car",
    "name": "Car Loan",
    "principal": 120000,
    "interest_rate": 0,
    "tenure_months": 12,
    "monthly_emi": 10000,
    "start_date": "2024-12-31",
    "status": "active",
}

closed_loan = dict(car_loan, id="loan-old", name="Old Loan", status="closed")


def test_calculate_emi():
    assert calculate_emi(100000, 12, 12) == 8884.88


def test_zero_rate_emi_is_principal_over_tenure():
    assert calculate_emi(120000, 0, 12) == 10000.0


def test_degenerate_inputs():
    assert calculate_emi(0, 10, 12) == 0.0
    assert calculate_emi(1000, 10, 0) == 0.0


def test_total_interest():
    assert calculate_total_interest(100000, 8884.88, 12) == 6618.56


def test_schedule_amortizes_to_zero():
    schedule = generate_emi_schedule(home_loan)
    assert len(schedule) == 12
    assert schedule[0].interest_component == 1000.0
    assert schedule[0].principal_component == 7884.88
    assert schedule[-1].outstanding_balance < 1
    assert schedule[1].payment_date == "2025-02-15"


def test_schedule_dates_clamp_to_month_end():
    schedule = generate_emi_schedule(car_loan)
    assert schedule[2].payment_date == "2025-02-28"
    assert schedule[-1].outstanding_balance == 0.0


def test_upcoming_emis():
    transactions = [
        {"type": "emi", "loan_id": "loan-home", "amount": 8884.88, "date": "2025-11-15"},
        {"type": "emi", "loan_id": "loan-car", "amount": 10000, "date": "2025-10-31"},
    ]
    items = {item.loan_id: item for item in upcoming_emis([home_loan, car_loan, closed_loan], transactions, november)}
    assert set(items) == {"loan-home", "loan-car"}
    assert items["loan-home"].due_date == "2025-11-15"
    assert items["loan-home"].is_paid is True
    assert items["loan-car"].due_date == "2025-11-30"
    assert items["loan-car"].is_paid is False


def test_due_date_rolls_to_next_month():
    window = DateRange(date(2025, 11, 20), date(2025, 12, 19))
    [item] = upcoming_emis([home_loan], [], window)
    assert item.due_date == "2025-12-15"


def test_emi_overview():
    transactions = [{"type": "expense", "loan_id": "loan-home", "amount": 8884.88, "date": "2025-11-16"}]
    overview = emi_overview([home_loan, car_loan, closed_loan], transactions, november)
    assert overview["active_loans_count"] == 2
    assert overview["total_monthly_emi"] == 18884.88
    assert overview["total_paid"] == 8884.88
    assert overview["total_pending"] == 10000
    assert len(overview["upcoming_emis"]) == 2


def test_loan_payment_stats():
    payments = [
        {"amount": 10000, "date": "2025-02-28"},
        {"amount": 10000, "date": "2025-01-31"},
    ]
    stats = loan_payment_stats(car_loan, payments)
    assert stats["total_paid"] == 20000
    assert stats["emi_count"] == 2
    assert stats["last_payment_date"] == "2025-02-28"
    assert stats["remaining_payable"] == 100000
    assert stats["total_interest"] == 0.0
