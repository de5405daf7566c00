"""
Google Sheets import.

Connect flow: ``build_auth_url`` sends the user to Google's consent screen,
``handle_oauth_callback`` exchanges the returned code for tokens and stores
them in the user's settings record. ``sync_sheet`` then reads the
"Transactions" tab and imports rows that are not already present.
"""
import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, get_args
from urllib.parse import urlencode

import requests
from jose import JWTError, jwt

from fintrack.core.config import settings
from fintrack.core.exceptions import AuthenticationMissingError, MalformedInputError, RemoteServiceError
from fintrack.db import dynamo
from fintrack.models.transaction import TransactionType
from fintrack.utils.dates import iso_date

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
SHEET_RANGE = "Transactions!A:H"
STATE_EXPIRE_MINUTES = 10

SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")


def extract_sheet_id(sheet_url: str) -> str:
    match = SHEET_ID_PATTERN.search(sheet_url or "")
    if not match:
        raise MalformedInputError("Invalid Google Sheets URL")
    return match.group(1)


def _require_client() -> None:
    if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
        raise RemoteServiceError("Google Sheets integration is not configured", status_code=503)


def build_auth_url(user_id: str) -> str:
    _require_client()
    state = jwt.encode(
        {"sub": user_id, "exp": datetime.now(timezone.utc) + timedelta(minutes=STATE_EXPIRE_MINUTES)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    query = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": SHEETS_SCOPE,
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(query)}"


def user_id_from_state(state: str) -> str:
    try:
        payload = jwt.decode(state, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise MalformedInputError("Invalid or expired OAuth state")
    user_id = payload.get("sub")
    if not user_id:
        raise MalformedInputError("Invalid OAuth state")
    return user_id


def _token_request(data: Dict[str, str]) -> Dict[str, Any]:
    try:
        response = requests.post(GOOGLE_TOKEN_URL, data=data, timeout=settings.HTTP_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Google token request failed: {str(e)}")
        raise RemoteServiceError("Unable to reach Google")
    if not response.ok:
        logger.error(f"Google token request rejected: {response.status_code} {response.text}")
        raise RemoteServiceError(f"Google token error: {response.status_code}")
    return response.json()


def _tokens_record(tokens: Dict[str, Any], previous: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    expires_in = int(tokens.get("expires_in", 3600))
    return {
        "access_token": tokens["access_token"],
        # Google omits the refresh token on refresh grants
        "refresh_token": tokens.get("refresh_token") or (previous or {}).get("refresh_token"),
        "expires_at": (datetime.now(timezone.utc) + timedelta(seconds=expires_in)).isoformat(),
    }


def handle_oauth_callback(code: str, state: str) -> str:
    """Exchange the authorization code and store tokens. Returns the user id."""
    _require_client()
    user_id = user_id_from_state(state)
    tokens = _token_request(
        {
            "code": code,
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            "redirect_uri": settings.GOOGLE_REDIRECT_URI,
            "grant_type": "authorization_code",
        }
    )
    dynamo.save_user_settings(
        user_id,
        {
            "google_tokens": _tokens_record(tokens),
            "google_auth_status": "connected",
            "google_connected_at": datetime.now(timezone.utc).isoformat(),
        },
    )
    logger.info(f"Google Sheets connected for user: {user_id}")
    return user_id


def _parse_expiry(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    expires_at = datetime.fromisoformat(value)
    # Records written before timestamps carried an offset are UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at


def _access_token(user_id: str) -> str:
    record = dynamo.get_user_settings(user_id)
    tokens = record.get("google_tokens")
    if record.get("google_auth_status") != "connected" or not tokens:
        raise AuthenticationMissingError("Google Sheets is not connected")

    expires_at = _parse_expiry(tokens.get("expires_at"))
    if expires_at and expires_at > datetime.now(timezone.utc) + timedelta(minutes=1):
        return tokens["access_token"]

    if not tokens.get("refresh_token"):
        raise AuthenticationMissingError("Google authorization expired, reconnect Google Sheets")

    _require_client()
    refreshed = _token_request(
        {
            "refresh_token": tokens["refresh_token"],
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            "grant_type": "refresh_token",
        }
    )
    new_tokens = _tokens_record(refreshed, previous=tokens)
    dynamo.save_user_settings(user_id, {"google_tokens": new_tokens})
    logger.info(f"Refreshed Google access token for user: {user_id}")
    return new_tokens["access_token"]


def fetch_rows(sheet_id: str, access_token: str) -> List[List[str]]:
    try:
        response = requests.get(
            f"{SHEETS_API_URL}/{sheet_id}/values/{SHEET_RANGE}",
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=settings.HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"Sheets API request failed: {str(e)}")
        raise RemoteServiceError("Unable to reach Google Sheets")
    if response.status_code == 401:
        raise AuthenticationMissingError("Google authorization expired, reconnect Google Sheets")
    if not response.ok:
        logger.error(f"Sheets API error: {response.status_code} {response.text}")
        raise RemoteServiceError(f"Failed to read sheet: {response.status_code}")
    return response.json().get("values", [])


def _cell(row: List[str], index: int) -> str:
    return str(row[index]).strip() if len(row) > index and row[index] is not None else ""


TRANSACTION_TYPES = get_args(TransactionType)


def _row_type(value: str) -> str:
    txn_type = value.lower()
    return txn_type if txn_type in TRANSACTION_TYPES else "expense"


def parse_rows(rows: List[List[str]], user_id: str) -> List[Dict[str, Any]]:
    """
    Turn sheet rows into transaction records.

    Columns: Date, Type, Category, Description, Amount, Person. The first
    row is the header. Rows with fewer than four cells, with a non-positive
    or unparseable amount, or with a date that is not ISO formatted are
    skipped. Unknown types are imported as expenses.
    """
    transactions = []
    now = datetime.now(timezone.utc)
    for row in rows[1:]:
        if len(row) < 4:
            continue
        try:
            amount = float(_cell(row, 4).replace(",", "") or 0)
        except ValueError:
            continue
        if amount <= 0:
            continue
        try:
            txn_date = iso_date(_cell(row, 0)) if _cell(row, 0) else now.date().isoformat()
        except ValueError:
            logger.debug(f"Skipping sheet row with unreadable date: {_cell(row, 0)!r}")
            continue
        item_id = str(uuid.uuid4())
        transaction = {
            "user_id": user_id,
            "id": item_id,
            "item_id": item_id,
            "date": txn_date,
            "type": _row_type(_cell(row, 1)),
            "category": _cell(row, 2) or "Other",
            "description": _cell(row, 3),
            "amount": amount,
            "source": "google_sheets",
            "created_at": now.isoformat(),
        }
        person = _cell(row, 5)
        if person:
            transaction["person"] = person
        transactions.append(transaction)
    return transactions


def is_duplicate(candidate: Dict[str, Any], existing: List[Dict[str, Any]]) -> bool:
    for txn in existing:
        if (
            str(txn.get("date", ""))[:10] == candidate["date"][:10]
            and abs(float(txn.get("amount", 0)) - candidate["amount"]) < 0.01
            and txn.get("category") == candidate["category"]
            and (txn.get("description") or "") == candidate["description"]
        ):
            return True
    return False


def sync_sheet(user_id: str, sheet_url: str) -> Dict[str, Any]:
    sheet_id = extract_sheet_id(sheet_url)
    access_token = _access_token(user_id)

    rows = fetch_rows(sheet_id, access_token)
    if len(rows) <= 1:
        return {"imported": 0, "duplicates": 0, "total": 0, "message": "No transactions found in sheet"}

    parsed = parse_rows(rows, user_id)
    existing = dynamo.list_items("transactions", user_id)
    fresh = []
    duplicates = 0
    for txn in parsed:
        if is_duplicate(txn, existing + fresh):
            duplicates += 1
        else:
            fresh.append(txn)

    imported = dynamo.put_items("transactions", user_id, fresh)
    dynamo.save_user_settings(
        user_id,
        {"google_sheet_id": sheet_id, "google_last_sync": datetime.now(timezone.utc).isoformat()},
    )
    logger.info(f"Sheets sync for {user_id}: {imported} imported, {duplicates} duplicates")
    return {
        "imported": imported,
        "duplicates": duplicates,
        "total": len(parsed),
        "message": f"Imported {imported} transactions ({duplicates} duplicates skipped)",
    }
