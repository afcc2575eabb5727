"""
Panic (SOS) endpoints.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from sentinel.core.auth import get_current_user
from sentinel.models.base import ApiResponse, success_response
from sentinel.models.panic import PanicRequest
from sentinel.models.user import AuthenticatedUser
from sentinel.services.panic_service import get_panic_service

router = APIRouter(prefix="/api/panic", tags=["Panic"])


@router.post("", response_model=ApiResponse)
async def send_panic_alert(request: PanicRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """
    Send an SOS alert to the caller's trusted contacts.

    The alert is stored first; contacts that have the app installed receive a
    high priority push notification.
    """
    result = await run_in_threadpool(get_panic_service().send_panic_alert, user.uid, request)
    return success_response(result, "Panic alert sent successfully")


@router.get("/recent", response_model=ApiResponse)
async def list_recent_alerts(
    hours: int = Query(24, ge=1, le=168),
    user: AuthenticatedUser = Depends(get_current_user),
):
    result = await run_in_threadpool(get_panic_service().list_recent_alerts, user.uid, hours)
    return success_response(result)
