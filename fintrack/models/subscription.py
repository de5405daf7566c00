from typing import Literal, Optional

from pydantic import BaseModel

SubscriptionStatus = Literal["active", "cancelled", "expired", "trial"]


class Subscription(BaseModel):
    plan: str = "premium"
    status: SubscriptionStatus
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    trial_ends_at: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None


class OrderRequest(BaseModel):
    amount: int
    currency: str = "INR"
    plan: str = "premium_monthly"


class OrderResponse(BaseModel):
    order_id: str
    amount: int
    currency: str
    publishable_key: str


class SubscriptionStatusResponse(BaseModel):
    subscription: Optional[Subscription] = None
    is_premium: bool
    is_trial: bool
    trial_days_left: Optional[int] = None
