"""
Location sharing endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from sentinel.core.auth import get_current_user
from sentinel.models.base import ApiResponse, success_response
from sentinel.models.location import LocationShareRequest
from sentinel.models.user import AuthenticatedUser
from sentinel.services.location_service import get_location_service

router = APIRouter(prefix="/api/location", tags=["Location"])


@router.post("/share", response_model=ApiResponse)
async def share_location(request: LocationShareRequest, user: AuthenticatedUser = Depends(get_current_user)):
    result = await run_in_threadpool(get_location_service().share_location, user.uid, request)
    return success_response(result, "Location shared successfully")
