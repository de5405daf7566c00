"""
Razorpay order creation and webhook verification.
"""
import hashlib
import hmac
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from dateutil.relativedelta import relativedelta

from fintrack.core.config import settings
from fintrack.core.exceptions import MalformedInputError, RemoteServiceError

logger = logging.getLogger(__name__)

# Prices live on the server; amounts are in the smallest currency unit.
VALID_PLANS = {
    "premium_monthly": {"amount": 29900, "currency": "INR"},
}


def _credentials() -> tuple:
    if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
        raise RemoteServiceError("Payment gateway is not configured", status_code=503)
    return settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET


def validate_order_request(plan: str, amount: int, currency: str) -> Dict[str, Any]:
    if plan not in VALID_PLANS:
        raise MalformedInputError("Invalid plan selected")
    price = VALID_PLANS[plan]
    if amount != price["amount"] or currency.upper() != price["currency"]:
        raise MalformedInputError(
            f"Amount does not match plan price ({price['amount']} {price['currency']})"
        )
    return price


def create_order(user_id: str, amount: int, currency: str, plan: str = "premium_monthly",
                 email: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a Razorpay order and return what the client checkout needs:
    order_id, amount, currency and the publishable key id.
    """
    price = validate_order_request(plan, amount, currency)
    key_id, key_secret = _credentials()

    payload = {
        "amount": price["amount"],
        "currency": price["currency"],
        "receipt": f"fintrack_{user_id[:8]}_{int(time.time() * 1000)}",
        "notes": {"user_id": user_id, "user_email": email or "", "plan": plan},
    }
    try:
        response = requests.post(
            f"{settings.RAZORPAY_API_URL}/orders",
            json=payload,
            auth=(key_id, key_secret),
            timeout=settings.HTTP_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"Razorpay order request failed: {str(e)}")
        raise RemoteServiceError("Unable to reach payment gateway")

    if not response.ok:
        logger.error(f"Razorpay order creation failed: {response.status_code} {response.text}")
        raise RemoteServiceError(f"Razorpay API error: {response.status_code}")

    order = response.json()
    logger.info(f"Razorpay order created: {order['id']} for user: {user_id}")
    return {
        "order_id": order["id"],
        "amount": order["amount"],
        "currency": order["currency"],
        "publishable_key": key_id,
    }


def verify_webhook_signature(body: bytes, signature: str, secret: Optional[str] = None) -> bool:
    secret = secret or settings.RAZORPAY_WEBHOOK_SECRET
    if not secret or not signature:
        return False
    computed = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, signature)


def subscription_from_event(event: Dict[str, Any], now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
    """
    Map a webhook event to (user_id, subscription record). Only captured
    one-time payments and charged subscriptions grant a premium period.
    """
    now = now or datetime.now(timezone.utc)
    period_end = now + relativedelta(months=1)
    event_type = event.get("event")
    payload = event.get("payload") or {}

    if event_type == "payment.captured":
        payment = (payload.get("payment") or {}).get("entity")
        if not payment:
            return None
        user_id = (payment.get("notes") or {}).get("user_id")
        if not user_id:
            raise MalformedInputError("No user_id in payment notes")
        return {
            "user_id": user_id,
            "subscription": {
                "plan": "premium",
                "status": "active",
                "amount": payment.get("amount"),
                "currency": payment.get("currency") or "INR",
                "razorpay_payment_id": payment.get("id"),
                "razorpay_order_id": payment.get("order_id"),
                "period_start": now.isoformat(),
                "period_end": period_end.isoformat(),
            },
        }

    if event_type == "subscription.charged":
        subscription = (payload.get("subscription") or {}).get("entity")
        user_id = ((subscription or {}).get("notes") or {}).get("user_id")
        if not user_id:
            return None
        return {
            "user_id": user_id,
            "subscription": {
                "plan": "premium",
                "status": "active",
                "period_start": now.isoformat(),
                "period_end": period_end.isoformat(),
            },
        }

    return None
