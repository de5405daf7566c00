from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.recurring import (
    RecurringPaymentCreate,
    RecurringPaymentInDB,
    RecurringPaymentPublic,
    RecurringPaymentUpdate,
)

router = APIRouter()


@router.post("/", response_model=RecurringPaymentPublic, status_code=status.HTTP_201_CREATED)
def create_recurring_payment(payment: RecurringPaymentCreate, user_id: str = Depends(get_current_user_id)):
    payment_db = RecurringPaymentInDB(user_id=user_id, **payment.model_dump())
    dynamo.put_item("recurring_payments", payment_db.to_item())
    return RecurringPaymentPublic(**payment_db.model_dump())


@router.get("/", response_model=List[RecurringPaymentPublic])
def list_recurring_payments(
    is_active: Optional[bool] = None,
    category: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
):
    items = dynamo.list_items(
        "recurring_payments",
        user_id,
        filters={"is_active": is_active, "category": category},
    )
    return sorted(items, key=lambda p: p.get("next_due_date", ""))


@router.put("/{payment_id}", response_model=RecurringPaymentPublic)
def update_recurring_payment(
    payment_id: str,
    payment_update: RecurringPaymentUpdate,
    user_id: str = Depends(get_current_user_id),
):
    mutable_fields = payment_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = dynamo.update_item("recurring_payments", user_id, payment_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Recurring payment not found")
    return RecurringPaymentPublic(**updated)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recurring_payment(payment_id: str, user_id: str = Depends(get_current_user_id)):
    if not dynamo.delete_item("recurring_payments", user_id, payment_id):
        raise HTTPException(status_code=404, detail="Recurring payment not found")
    return None
