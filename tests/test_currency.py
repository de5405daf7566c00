from fintrack.utils.currency import (
    format_currency,
    format_currency_compact,
    get_currency_symbol,
    group_digits,
    parse_amount,
)


def test_format_inr_uses_indian_grouping():
    assert format_currency(1234567, "INR") == "₹ 12,34,567"
    assert format_currency(999, "INR") == "₹ 999"


def test_format_international_grouping():
    assert format_currency(1234567, "USD") == "$1,234,567"
    assert format_currency(1500, "EUR") == "€1,500"


def test_sign_applied_after_formatting():
    assert format_currency(-123456, "INR") == "-₹ 1,23,456"
    assert format_currency(-42, "GBP") == "-£42"


def test_unknown_currency_falls_back_to_code():
    assert format_currency(100, "CHF") == "CHF 100"
    assert get_currency_symbol("chf") == "CHF"


def test_compact_rounds_half_up():
    assert format_currency_compact(12_500_000, "INR") == "₹ 1.3Cr"
    assert format_currency_compact(12_500, "USD") == "$12.5K"


def test_compact_magnitudes():
    assert format_currency_compact(150_000, "INR") == "₹ 1.5L"
    assert format_currency_compact(2_500, "INR") == "₹ 2.5K"
    assert format_currency_compact(2_500_000, "USD") == "$2.5M"
    assert format_currency_compact(-1_000_000, "USD") == "-$1.0M"


def test_compact_small_amounts_use_plain_value():
    assert format_currency_compact(999, "INR") == "₹ 999"
    assert format_currency_compact(12.5, "USD") == "$12.5"
    assert format_currency_compact(0, "USD") == "$0"


def test_formatting_is_idempotent():
    for amount in (0, 7.5, 1234.56, 98_765_432):
        assert format_currency(amount, "INR") == format_currency(amount, "INR")
        assert format_currency_compact(amount, "USD") == format_currency_compact(amount, "USD")


def test_group_digits():
    assert group_digits(100000, "INR") == "1,00,000"
    assert group_digits(100000, "USD") == "100,000"
    assert group_digits(1234.5, "INR", places=2) == "1,234.50"


def test_parse_amount():
    assert parse_amount("₹ 1,23,456") == 123456.0
    assert parse_amount("$1,234.50") == 1234.5
    assert parse_amount("n/a") == 0.0
    assert parse_amount("") == 0.0
