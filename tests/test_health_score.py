from fintrack.utils.health_score import (
    HealthScoreWeights,
    calculate_health_score,
    score_from_ratios,
    score_label,
)


def test_zero_income_scores_zero():
    result = calculate_health_score(total_income=0, total_expenses=5000)
    assert result.score == 0
    assert result.label == "Critical"


def test_weighted_score():
    # 0.4*80 + 0.95*25 + 0.1*50 + 1*20 = 80.75
    result = calculate_health_score(
        total_income=100000,
        total_expenses=60000,
        total_investment=10000,
        emi=5000,
    )
    assert result.score == 81
    assert result.label == "Excellent"
    assert result.savings_rate == 0.4
    assert result.debt_ratio == 0.05


def test_rounds_half_up():
    assert score_from_ratios(0, 1, 0, 0.125) == 3


def test_score_is_clamped():
    overspent = calculate_health_score(total_income=1000, total_expenses=50000, emi=90000)
    assert overspent.score == 0
    assert overspent.budget_discipline == 0.02

    best = score_from_ratios(1.0, 0.0, 1.0, 1.0)
    assert best == 100


def test_monotone_in_savings_and_investment():
    previous = -1
    for expenses in (90000, 70000, 50000, 30000, 10000):
        score = calculate_health_score(100000, expenses).score
        assert score >= previous
        previous = score

    previous = -1
    for investment in (0, 5000, 10000, 20000, 40000):
        score = calculate_health_score(100000, 50000, total_investment=investment).score
        assert score >= previous
        previous = score


def test_monotone_in_debt():
    previous = 101
    for emi in (0, 10000, 30000, 60000, 150000):
        score = calculate_health_score(100000, 50000, emi=emi).score
        assert score <= previous
        previous = score


def test_borrowed_money_counts_as_debt():
    without = calculate_health_score(100000, 50000)
    with_debt = calculate_health_score(100000, 50000, money_borrowed=40000)
    assert with_debt.debt_ratio == 0.4
    assert with_debt.score < without.score


def test_labels():
    assert score_label(80) == "Excellent"
    assert score_label(79) == "Good"
    assert score_label(60) == "Good"
    assert score_label(40) == "Warning"
    assert score_label(39) == "Critical"


def test_weight_overrides():
    weights = HealthScoreWeights.from_overrides({"savings_weight": 0, "unknown": 5})
    assert weights.savings_weight == 0.0
    assert weights.debt_weight == 25

    # Savings no longer count: 1*25 + 0 + 1*20
    result = calculate_health_score(100000, 50000, weights=weights)
    assert result.score == 45
