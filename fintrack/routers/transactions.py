import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.transaction import (
    TransactionCreate,
    TransactionInDB,
    TransactionPublic,
    TransactionType,
    TransactionUpdate,
)
from fintrack.utils.dates import parse_window

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=TransactionPublic, status_code=status.HTTP_201_CREATED)
def create_transaction(transaction: TransactionCreate, user_id: str = Depends(get_current_user_id)):
    transaction_db = TransactionInDB(user_id=user_id, **transaction.model_dump())
    dynamo.put_item("transactions", transaction_db.to_item())
    logger.info(f"Transaction {transaction_db.id} created for user: {user_id}")
    return TransactionPublic(**transaction_db.model_dump())


@router.get("/", response_model=List[TransactionPublic])
def list_transactions(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
):
    """
    Transactions of the current user, newest first. ``date_from`` and
    ``date_to`` (YYYY-MM-DD) bound the window inclusively.
    """
    window = parse_window(date_from, date_to)
    items = dynamo.list_items(
        "transactions",
        user_id,
        date_from=window.start.isoformat() if window else None,
        date_to=window.end.isoformat() if window else None,
        filters={"type": type, "category": category},
    )
    return sorted(items, key=lambda t: t.get("date", ""), reverse=True)


@router.put("/{transaction_id}", response_model=TransactionPublic)
def update_transaction(
    transaction_id: str,
    transaction_update: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
):
    mutable_fields = transaction_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = dynamo.update_item("transactions", user_id, transaction_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionPublic(**updated)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(transaction_id: str, user_id: str = Depends(get_current_user_id)):
    deleted = dynamo.delete_item("transactions", user_id, transaction_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return None
