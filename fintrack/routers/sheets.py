import logging
from typing import Dict
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from fintrack.core.config import settings
from fintrack.core.exceptions import FinTrackError
from fintrack.core.security import get_current_user_id
from fintrack.models.settings import SheetsRequest
from fintrack.utils import sheets

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("")
def sheets_action(request: SheetsRequest, user_id: str = Depends(get_current_user_id)) -> Dict:
    """
    ``authenticate`` returns the Google consent URL; ``sync`` imports the
    "Transactions" tab of ``sheet_url``.
    """
    if request.action == "authenticate":
        return {"auth_url": sheets.build_auth_url(user_id)}

    if not request.sheet_url:
        raise HTTPException(status_code=400, detail="sheet_url is required for sync")
    return sheets.sync_sheet(user_id, request.sheet_url)


@router.get("/callback")
def oauth_callback(code: str = "", state: str = "", error: str = ""):
    """Google redirects here; the user is sent back to the frontend either way."""
    if error or not code or not state:
        query = {"sheets": "error", "reason": error or "missing_code"}
        return RedirectResponse(f"{settings.FRONTEND_URL}/settings?{urlencode(query)}")

    try:
        sheets.handle_oauth_callback(code, state)
    except FinTrackError as e:
        logger.error(f"Google OAuth callback failed: {str(e)}")
        query = {"sheets": "error", "reason": str(e)}
        return RedirectResponse(f"{settings.FRONTEND_URL}/settings?{urlencode(query)}")
    return RedirectResponse(f"{settings.FRONTEND_URL}/settings?sheets=connected")
