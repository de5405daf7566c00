from typing import Literal, Optional

from pydantic import BaseModel


class PreferencesUpdate(BaseModel):
    currency: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


class TrialRequest(BaseModel):
    is_trial: bool = True


class SheetsRequest(BaseModel):
    action: Literal["authenticate", "sync"]
    sheet_url: Optional[str] = None
