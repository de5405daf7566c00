from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field


class BudgetCreate(BaseModel):
    category: str
    monthly_limit: float = Field(ge=0)


class BudgetUpdate(BaseModel):
    category: Optional[str] = None
    monthly_limit: Optional[float] = Field(default=None, ge=0)


class BudgetInDB(BudgetCreate):
    user_id: str
    id: str = Field(default_factory=lambda: str(uuid4()))
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_item(self) -> dict:
        return dict(self.model_dump(), item_id=self.id)


class BudgetPublic(BudgetCreate):
    id: str
