import json
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from fintrack.core.preferences import PreferenceStore, subscription_status
from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.subscription import (
    OrderRequest,
    OrderResponse,
    Subscription,
    SubscriptionStatusResponse,
)
from fintrack.routers.settings import get_preferences
from fintrack.utils import payments

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/status", response_model=SubscriptionStatusResponse)
def get_subscription_status(
    user_id: str = Depends(get_current_user_id),
    prefs: PreferenceStore = Depends(get_preferences),
):
    subscription = dynamo.get_subscription(user_id)
    gate = subscription_status(subscription)
    is_trial = gate["is_trial"] or prefs.is_trial_active
    return SubscriptionStatusResponse(
        subscription=Subscription(**subscription) if subscription else None,
        is_premium=gate["is_premium"] or prefs.is_premium,
        is_trial=is_trial,
        trial_days_left=gate["trial_days_left"] if gate["is_trial"] else prefs.trial_days_left,
    )


@router.post("/order", response_model=OrderResponse)
def create_order(order: OrderRequest, user_id: str = Depends(get_current_user_id)):
    """
    Create a Razorpay order for the requested plan. The amount and currency
    must match the plan's server-side price.
    """
    logger.info(f"Creating {order.plan} order for user: {user_id}")
    return payments.create_order(user_id, order.amount, order.currency, order.plan)


@router.post("/webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
) -> Dict:
    body = await request.body()
    if not payments.verify_webhook_signature(body, x_razorpay_signature or ""):
        logger.warning("Rejected Razorpay webhook with invalid signature")
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    logger.info(f"Razorpay webhook event: {event.get('event')}")
    activation = payments.subscription_from_event(event)
    if activation is not None:
        dynamo.save_subscription(activation["user_id"], activation["subscription"])
        logger.info(f"Premium activated for user: {activation['user_id']}")
    return {"received": True}
