from datetime import date, datetime, timezone
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from fintrack.utils.dates import iso_date

Frequency = Literal["daily", "weekly", "biweekly", "monthly", "quarterly", "yearly"]


class RecurringPaymentCreate(BaseModel):
    title: str
    amount: float = Field(ge=0)
    category: str
    frequency: Frequency = "monthly"
    next_due_date: str = Field(default_factory=lambda: date.today().isoformat())
    is_active: bool = True

    @field_validator("next_due_date")
    @classmethod
    def validate_next_due_date(cls, v: str) -> str:
        return iso_date(v)


class RecurringPaymentUpdate(BaseModel):
    title: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    frequency: Optional[Frequency] = None
    next_due_date: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("next_due_date")
    @classmethod
    def validate_next_due_date(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else iso_date(v)


class RecurringPaymentInDB(RecurringPaymentCreate):
    user_id: str
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_item(self) -> dict:
        return dict(self.model_dump(), item_id=self.id)


class RecurringPaymentPublic(RecurringPaymentCreate):
    id: str
