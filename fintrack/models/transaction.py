from datetime import date, datetime, timezone
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from fintrack.utils.dates import iso_date

TransactionType = Literal["expense", "income", "lend", "borrow", "investment", "emi"]
TransactionStatus = Literal["pending", "completed", "received"]


class TransactionCreate(BaseModel):
    amount: float = Field(ge=0)
    type: TransactionType
    category: str
    date: str = Field(default_factory=lambda: date.today().isoformat())
    description: Optional[str] = ""
    status: TransactionStatus = "completed"
    loan_id: Optional[str] = None
    person: Optional[str] = None
    source: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return iso_date(v)


class TransactionUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TransactionStatus] = None
    loan_id: Optional[str] = None
    person: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else iso_date(v)


class TransactionInDB(TransactionCreate):
    user_id: str
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_item(self) -> dict:
        return dict(self.model_dump(), item_id=self.id)


class TransactionPublic(TransactionCreate):
    id: str
    created_at: Optional[str] = None
