from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from fintrack.core.config import settings
from fintrack.core.exceptions import AuthenticationMissingError, MalformedInputError
from fintrack.models.transaction import TransactionInDB
from fintrack.utils import sheets

SHEET_URL = "https://docs.google.com/spreadsheets/d/1AbC-dEf_123/edit#gid=0"

sheet_rows = [
    ["Date", "Type", "Category", "Description", "Amount", "Person"],
    ["2025-11-01", "Income", "Salary", "November pay", "50,000"],
    ["2025-11-02", "expense", "Rent", "Flat", "12000"],
    ["2025-11-03", "expense", "Food", "Lunch", "0"],
    ["2025-11-04", "expense", "Food", "Dinner", "abc"],
    ["2025-11-05", "lend", "Friends"],
    ["2025-11-06", "lend", "Friends", "Trip", "1500", "Ravi"],
]


@pytest.fixture
def google_client(monkeypatch):
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_ID", "client-id")
    monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "client-secret")


def test_extract_sheet_id():
    assert sheets.extract_sheet_id(SHEET_URL) == "1AbC-dEf_123"


@pytest.mark.parametrize("url", ["", "https://example.com/sheet", "not a url"])
def test_extract_sheet_id_rejects_bad_urls(url):
    with pytest.raises(MalformedInputError):
        sheets.extract_sheet_id(url)


def test_parse_rows():
    parsed = sheets.parse_rows(sheet_rows, "user-1")
    assert [t["category"] for t in parsed] == ["Salary", "Rent", "Friends"]
    salary, rent, lend = parsed
    assert salary["type"] == "income"
    assert salary["amount"] == 50000.0
    assert salary["source"] == "google_sheets"
    assert salary["id"] == salary["item_id"]
    assert "person" not in rent
    assert lend["person"] == "Ravi"


def test_parse_rows_normalises_type_and_date():
    rows = [
        sheet_rows[0],
        ["15/01/2025", "Income", "Job", "Jan pay", "5000"],
        ["2025-1-5", "expense", "Food", "Lunch", "200"],
        ["2025-01-20", "Salary", "Job", "Bonus", "3000"],
        ["2025-01-21T10:15:00Z", "EMI", "Car", "Installment", "9000"],
        ["", "investment", "Funds", "SIP", "1000"],
    ]
    parsed = sheets.parse_rows(rows, "user-1")
    assert [t["description"] for t in parsed] == ["Bonus", "Installment", "SIP"]
    bonus, emi, sip = parsed
    assert bonus["type"] == "expense"
    assert emi["type"] == "emi"
    assert emi["date"] == "2025-01-21"
    assert sip["type"] == "investment"
    assert len(sip["date"]) == 10


def test_parsed_rows_are_valid_transactions():
    for row in sheets.parse_rows(sheet_rows, "user-1"):
        TransactionInDB(**row)


def test_is_duplicate():
    existing = [{"date": "2025-11-02T00:00:00", "amount": 12000.004, "category": "Rent", "description": "Flat"}]
    candidate = {"date": "2025-11-02", "amount": 12000.0, "category": "Rent", "description": "Flat"}
    assert sheets.is_duplicate(candidate, existing) is True
    assert sheets.is_duplicate(dict(candidate, amount=12001.0), existing) is False
    assert sheets.is_duplicate(dict(candidate, description="Office"), existing) is False


def test_auth_url_carries_signed_state(google_client):
    url = sheets.build_auth_url("user-1")
    query = parse_qs(urlparse(url).query)
    assert query["client_id"] == ["client-id"]
    assert query["scope"] == [sheets.SHEETS_SCOPE]
    assert sheets.user_id_from_state(query["state"][0]) == "user-1"


def test_forged_state_is_rejected():
    with pytest.raises(MalformedInputError):
        sheets.user_id_from_state("not-a-jwt")


def _connected_settings():
    return {
        "google_auth_status": "connected",
        "google_tokens": {
            "access_token": "access-1",
            "refresh_token": "refresh-1",
            "expires_at": (datetime.now(timezone.utc) + timedelta(hours=1)).isoformat(),
        },
    }


def test_sync_imports_new_rows(monkeypatch):
    saved = {}
    written = []
    monkeypatch.setattr(sheets.dynamo, "get_user_settings", lambda user_id: _connected_settings())
    monkeypatch.setattr(sheets.dynamo, "save_user_settings", lambda user_id, values: saved.update(values))
    monkeypatch.setattr(
        sheets.dynamo,
        "list_items",
        lambda collection, user_id: [{"date": "2025-11-02", "amount": 12000, "category": "Rent", "description": "Flat"}],
    )

    def put_items(collection, user_id, items):
        written.extend(items)
        return len(items)

    monkeypatch.setattr(sheets.dynamo, "put_items", put_items)

    response = MagicMock(ok=True, status_code=200)
    response.json.return_value = {"values": sheet_rows}
    with patch("fintrack.utils.sheets.requests.get", return_value=response) as get:
        result = sheets.sync_sheet("user-1", SHEET_URL)

    assert result["imported"] == 2
    assert result["duplicates"] == 1
    assert result["total"] == 3
    assert [t["category"] for t in written] == ["Salary", "Friends"]
    assert saved["google_sheet_id"] == "1AbC-dEf_123"
    assert get.call_args.kwargs["headers"] == {"Authorization": "Bearer access-1"}


def test_sync_empty_sheet(monkeypatch):
    monkeypatch.setattr(sheets.dynamo, "get_user_settings", lambda user_id: _connected_settings())
    response = MagicMock(ok=True, status_code=200)
    response.json.return_value = {"values": [sheet_rows[0]]}
    with patch("fintrack.utils.sheets.requests.get", return_value=response):
        result = sheets.sync_sheet("user-1", SHEET_URL)
    assert result["imported"] == 0
    assert result["total"] == 0


def test_sync_requires_connection(monkeypatch):
    monkeypatch.setattr(sheets.dynamo, "get_user_settings", lambda user_id: {})
    with patch("fintrack.utils.sheets.requests.get") as get:
        with pytest.raises(AuthenticationMissingError):
            sheets.sync_sheet("user-1", SHEET_URL)
    get.assert_not_called()


def test_bad_url_fails_before_any_call(monkeypatch):
    lookup = MagicMock()
    monkeypatch.setattr(sheets.dynamo, "get_user_settings", lookup)
    with pytest.raises(MalformedInputError):
        sheets.sync_sheet("user-1", "https://example.com")
    lookup.assert_not_called()


def test_expired_token_is_refreshed(monkeypatch, google_client):
    record = _connected_settings()
    record["google_tokens"]["expires_at"] = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
    saved = {}
    monkeypatch.setattr(sheets.dynamo, "get_user_settings", lambda user_id: record)
    monkeypatch.setattr(sheets.dynamo, "save_user_settings", lambda user_id, values: saved.update(values))

    token_response = MagicMock(ok=True, status_code=200)
    token_response.json.return_value = {"access_token": "access-2", "expires_in": 3600}
    with patch("fintrack.utils.sheets.requests.post", return_value=token_response) as post:
        token = sheets._access_token("user-1")

    assert token == "access-2"
    assert post.call_args.kwargs["data"]["grant_type"] == "refresh_token"
    assert saved["google_tokens"]["refresh_token"] == "refresh-1"


def test_naive_expiry_is_read_as_utc(monkeypatch):
    record = _connected_settings()
    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(hours=1)
    record["google_tokens"]["expires_at"] = naive.isoformat()
    monkeypatch.setattr(sheets.dynamo, "get_user_settings", lambda user_id: record)
    with patch("fintrack.utils.sheets.requests.post") as post:
        assert sheets._access_token("user-1") == "access-1"
    post.assert_not_called()


def test_oauth_callback_stores_tokens(monkeypatch, google_client):
    saved = {}
    monkeypatch.setattr(sheets.dynamo, "save_user_settings", lambda user_id, values: saved.update(values, user=user_id))
    state = parse_qs(urlparse(sheets.build_auth_url("user-9")).query)["state"][0]

    token_response = MagicMock(ok=True, status_code=200)
    token_response.json.return_value = {"access_token": "a", "refresh_token": "r", "expires_in": 3600}
    with patch("fintrack.utils.sheets.requests.post", return_value=token_response):
        assert sheets.handle_oauth_callback("code-1", state) == "user-9"

    assert saved["user"] == "user-9"
    assert saved["google_auth_status"] == "connected"
    assert saved["google_tokens"]["refresh_token"] == "r"
