from datetime import date, datetime, timezone
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from fintrack.utils.dates import iso_date

LoanStatus = Literal["active", "closed", "defaulted"]
LoanType = Literal["personal", "home", "car", "education", "business", "gold", "other"]


class LoanCreate(BaseModel):
    name: str
    principal: float = Field(gt=0)
    interest_rate: float = Field(ge=0)
    tenure_months: int = Field(gt=0)
    start_date: str = Field(default_factory=lambda: date.today().isoformat())
    status: LoanStatus = "active"
    lender_name: Optional[str] = None
    loan_type: LoanType = "personal"
    # Computed from principal, rate and tenure when omitted
    monthly_emi: Optional[float] = Field(default=None, ge=0)

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str) -> str:
        return iso_date(v)


class LoanUpdate(BaseModel):
    name: Optional[str] = None
    principal: Optional[float] = Field(default=None, gt=0)
    interest_rate: Optional[float] = Field(default=None, ge=0)
    tenure_months: Optional[int] = Field(default=None, gt=0)
    start_date: Optional[str] = None
    status: Optional[LoanStatus] = None
    lender_name: Optional[str] = None
    loan_type: Optional[LoanType] = None

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else iso_date(v)


class LoanInDB(LoanCreate):
    user_id: str
    id: str = Field(default_factory=lambda: str(uuid4()))
    monthly_emi: float = 0.0
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_item(self) -> dict:
        return dict(self.model_dump(), item_id=self.id)


class LoanPublic(LoanCreate):
    id: str
    monthly_emi: float


class LoanPaymentCreate(BaseModel):
    amount: float = Field(ge=0)
    date: str = Field(default_factory=lambda: date.today().isoformat())
    note: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return iso_date(v)


class LoanPaymentInDB(LoanPaymentCreate):
    user_id: str
    loan_id: str
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_item(self) -> dict:
        return dict(self.model_dump(), item_id=self.id)


class LoanPaymentPublic(LoanPaymentCreate):
    id: str
    loan_id: str
