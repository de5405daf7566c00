from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.budget import BudgetCreate, BudgetInDB, BudgetPublic, BudgetUpdate

router = APIRouter()


@router.post("/", response_model=BudgetPublic, status_code=status.HTTP_201_CREATED)
def create_budget(budget: BudgetCreate, user_id: str = Depends(get_current_user_id)):
    existing = dynamo.list_items("budgets", user_id, filters={"category": budget.category})
    if existing:
        raise HTTPException(status_code=409, detail=f"A budget for {budget.category} already exists")
    budget_db = BudgetInDB(user_id=user_id, **budget.model_dump())
    dynamo.put_item("budgets", budget_db.to_item())
    return BudgetPublic(**budget_db.model_dump())


@router.get("/", response_model=List[BudgetPublic])
def list_budgets(user_id: str = Depends(get_current_user_id)):
    return sorted(dynamo.list_items("budgets", user_id), key=lambda b: b.get("category", ""))


@router.put("/{budget_id}", response_model=BudgetPublic)
def update_budget(budget_id: str, budget_update: BudgetUpdate, user_id: str = Depends(get_current_user_id)):
    mutable_fields = budget_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    updated = dynamo.update_item("budgets", user_id, budget_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Budget not found")
    return BudgetPublic(**updated)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(budget_id: str, user_id: str = Depends(get_current_user_id)):
    if not dynamo.delete_item("budgets", user_id, budget_id):
        raise HTTPException(status_code=404, detail="Budget not found")
    return None
