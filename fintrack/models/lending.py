from datetime import date, datetime, timezone
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from fintrack.utils.dates import iso_date

LendingType = Literal["lent", "borrowed", "repaid_by_them", "repaid_by_me"]
LendingStatus = Literal["active", "settled", "partial"]


class LendingCreate(BaseModel):
    amount: float = Field(ge=0)
    type: LendingType
    person_name: str
    date: str = Field(default_factory=lambda: date.today().isoformat())
    status: LendingStatus = "active"
    description: Optional[str] = ""

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return iso_date(v)


class LendingUpdate(BaseModel):
    amount: Optional[float] = Field(default=None, ge=0)
    type: Optional[LendingType] = None
    person_name: Optional[str] = None
    date: Optional[str] = None
    status: Optional[LendingStatus] = None
    description: Optional[str] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else iso_date(v)


class LendingInDB(LendingCreate):
    user_id: str
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_item(self) -> dict:
        return dict(self.model_dump(), item_id=self.id)


class LendingPublic(LendingCreate):
    id: str
