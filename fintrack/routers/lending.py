from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.lending import (
    LendingCreate,
    LendingInDB,
    LendingPublic,
    LendingStatus,
    LendingType,
    LendingUpdate,
)
from fintrack.utils.dates import parse_window

router = APIRouter()


@router.post("/", response_model=LendingPublic, status_code=status.HTTP_201_CREATED)
def create_lending_transaction(lending: LendingCreate, user_id: str = Depends(get_current_user_id)):
    lending_db = LendingInDB(user_id=user_id, **lending.model_dump())
    dynamo.put_item("lending_transactions", lending_db.to_item())
    return LendingPublic(**lending_db.model_dump())


@router.get("/", response_model=List[LendingPublic])
def list_lending_transactions(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    person_name: Optional[str] = None,
    type: Optional[LendingType] = None,
    status_filter: Optional[LendingStatus] = Query(None, alias="status"),
    user_id: str = Depends(get_current_user_id),
):
    window = parse_window(date_from, date_to)
    items = dynamo.list_items(
        "lending_transactions",
        user_id,
        date_from=window.start.isoformat() if window else None,
        date_to=window.end.isoformat() if window else None,
        filters={"person_name": person_name, "type": type, "status": status_filter},
    )
    return sorted(items, key=lambda t: t.get("date", ""), reverse=True)


@router.put("/{lending_id}", response_model=LendingPublic)
def update_lending_transaction(
    lending_id: str,
    lending_update: LendingUpdate,
    user_id: str = Depends(get_current_user_id),
):
    mutable_fields = lending_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = dynamo.update_item("lending_transactions", user_id, lending_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Lending transaction not found")
    return LendingPublic(**updated)


@router.delete("/{lending_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lending_transaction(lending_id: str, user_id: str = Depends(get_current_user_id)):
    if not dynamo.delete_item("lending_transactions", user_id, lending_id):
        raise HTTPException(status_code=404, detail="Lending transaction not found")
    return None
