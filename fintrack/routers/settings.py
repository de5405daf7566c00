"""
Settings Router
Per-user preferences: display currency, selected date range and the
premium/trial flag.
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException

from fintrack.core.preferences import PreferenceStore
from fintrack.core.security import get_current_user_id
from fintrack.db import dynamo
from fintrack.models.settings import PreferencesUpdate, TrialRequest
from fintrack.utils.currency import SUPPORTED_CURRENCIES
from fintrack.utils.dates import date_range_presets, parse_window

router = APIRouter()
logger = logging.getLogger(__name__)


def get_preferences(user_id: str = Depends(get_current_user_id)) -> PreferenceStore:
    """Preference store for the current user, writing changes back to DynamoDB."""
    return PreferenceStore(
        dynamo.get_user_settings(user_id),
        save=lambda values: dynamo.save_user_settings(user_id, values),
    )


@router.get("/preferences")
def read_preferences(prefs: PreferenceStore = Depends(get_preferences)) -> Dict:
    return prefs.to_dict()


@router.put("/preferences")
def update_preferences(update: PreferencesUpdate, prefs: PreferenceStore = Depends(get_preferences)) -> Dict:
    if update.currency is None and update.date_from is None and update.date_to is None:
        raise HTTPException(status_code=400, detail="No fields to update")

    if update.currency is not None:
        prefs.set_currency(update.currency)
    window = parse_window(update.date_from, update.date_to)
    if window is not None:
        prefs.set_date_range(window.start, window.end)
    return prefs.to_dict()


@router.get("/currencies")
def list_currencies() -> Dict:
    return {"currencies": list(SUPPORTED_CURRENCIES)}


@router.get("/date-presets")
def list_date_presets() -> Dict:
    return {
        "presets": [
            {"label": preset["label"], **preset["range"].to_dict()}
            for preset in date_range_presets()
        ]
    }


@router.post("/trial")
def start_trial(request: TrialRequest, prefs: PreferenceStore = Depends(get_preferences)) -> Dict:
    """
    ``is_trial: true`` starts the free trial; ``is_trial: false`` marks the
    account premium and ends the trial.
    """
    if request.is_trial and prefs.trial_ends_at() is not None:
        raise HTTPException(status_code=409, detail="Trial already used")
    prefs.start_trial(request.is_trial)
    return dict(prefs.to_dict(), trial_ends_at=prefs.trial_ends_at())
