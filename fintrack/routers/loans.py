import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.loan import (
    LoanCreate,
    LoanInDB,
    LoanPaymentCreate,
    LoanPaymentInDB,
    LoanPaymentPublic,
    LoanPublic,
    LoanStatus,
    LoanUpdate,
)
from fintrack.utils.emi import calculate_emi, generate_emi_schedule, loan_payment_stats

router = APIRouter()
logger = logging.getLogger(__name__)

# Changing any of these recomputes the stored monthly EMI
EMI_INPUTS = ("principal", "interest_rate", "tenure_months")


def _get_loan_or_404(user_id: str, loan_id: str) -> Dict:
    loan = dynamo.get_item("loans", user_id, loan_id)
    if not loan:
        raise HTTPException(status_code=404, detail="Loan not found")
    return loan


@router.post("/", response_model=LoanPublic, status_code=status.HTTP_201_CREATED)
def create_loan(loan: LoanCreate, user_id: str = Depends(get_current_user_id)):
    values = loan.model_dump()
    if values.get("monthly_emi") is None:
        values["monthly_emi"] = calculate_emi(loan.principal, loan.interest_rate, loan.tenure_months)
    loan_db = LoanInDB(user_id=user_id, **values)
    dynamo.put_item("loans", loan_db.to_item())
    logger.info(f"Loan {loan_db.id} created for user: {user_id}, EMI {loan_db.monthly_emi}")
    return LoanPublic(**loan_db.model_dump())


@router.get("/", response_model=List[LoanPublic])
def list_loans(
    status_filter: Optional[LoanStatus] = Query(None, alias="status"),
    user_id: str = Depends(get_current_user_id),
):
    items = dynamo.list_items("loans", user_id, filters={"status": status_filter})
    return sorted(items, key=lambda loan: loan.get("start_date", ""))


@router.put("/{loan_id}", response_model=LoanPublic)
def update_loan(loan_id: str, loan_update: LoanUpdate, user_id: str = Depends(get_current_user_id)):
    mutable_fields = loan_update.model_dump(exclude_unset=True)
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    if any(key in mutable_fields for key in EMI_INPUTS):
        current = dict(_get_loan_or_404(user_id, loan_id), **mutable_fields)
        mutable_fields["monthly_emi"] = calculate_emi(
            float(current["principal"]), float(current["interest_rate"]), int(current["tenure_months"])
        )

    updated = dynamo.update_item("loans", user_id, loan_id, mutable_fields)
    if not updated:
        raise HTTPException(status_code=404, detail="Loan not found")
    return LoanPublic(**updated)


@router.delete("/{loan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_loan(loan_id: str, user_id: str = Depends(get_current_user_id)):
    if not dynamo.delete_item("loans", user_id, loan_id):
        raise HTTPException(status_code=404, detail="Loan not found")
    return None


@router.get("/{loan_id}/schedule")
def get_loan_schedule(loan_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    loan = _get_loan_or_404(user_id, loan_id)
    return {
        "loan_id": loan_id,
        "monthly_emi": loan["monthly_emi"],
        "schedule": [item.to_dict() for item in generate_emi_schedule(loan)],
    }


@router.post(
    "/{loan_id}/payments",
    response_model=LoanPaymentPublic,
    status_code=status.HTTP_201_CREATED,
)
def record_loan_payment(
    loan_id: str,
    payment: LoanPaymentCreate,
    user_id: str = Depends(get_current_user_id),
):
    _get_loan_or_404(user_id, loan_id)
    payment_db = LoanPaymentInDB(user_id=user_id, loan_id=loan_id, **payment.model_dump())
    dynamo.put_item("loan_payments", payment_db.to_item())
    return LoanPaymentPublic(**payment_db.model_dump())


@router.get("/{loan_id}/payments", response_model=List[LoanPaymentPublic])
def list_loan_payments(loan_id: str, user_id: str = Depends(get_current_user_id)):
    payments = dynamo.list_items("loan_payments", user_id, filters={"loan_id": loan_id})
    return sorted(payments, key=lambda p: p.get("date", ""), reverse=True)


@router.delete("/{loan_id}/payments/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_loan_payment(loan_id: str, payment_id: str, user_id: str = Depends(get_current_user_id)):
    payment = dynamo.get_item("loan_payments", user_id, payment_id)
    if not payment or payment.get("loan_id") != loan_id:
        raise HTTPException(status_code=404, detail="Payment not found")
    if not dynamo.delete_item("loan_payments", user_id, payment_id):
        raise HTTPException(status_code=404, detail="Payment not found")
    return None


@router.get("/{loan_id}/stats")
def get_loan_stats(loan_id: str, user_id: str = Depends(get_current_user_id)) -> Dict:
    loan = _get_loan_or_404(user_id, loan_id)
    payments = dynamo.list_items("loan_payments", user_id, filters={"loan_id": loan_id})
    return loan_payment_stats(loan, payments)
