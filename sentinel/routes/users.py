"""
User endpoints - registration, login, profile, settings and reference lists.
"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from sentinel.core.auth import get_current_user
from sentinel.models.base import ApiResponse, success_response
from sentinel.models.user import AuthenticatedUser, LoginRequest, RegisterRequest, SettingsRequest
from sentinel.services.user_service import get_user_service
from sentinel.utils.validation import category_list, suburb_list

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post("/register", response_model=ApiResponse)
async def register(request: RegisterRequest):
    """
    Register a new account.

    Creates the Firebase Auth account and the profile document with default
    settings (Robbery, GBV, Hazard and General notifications, 30 minute
    location sharing).
    """
    result = await run_in_threadpool(get_user_service().register, request)
    return success_response(result, "User registered successfully")


@router.post("/login", response_model=ApiResponse)
async def login(request: LoginRequest):
    result = await run_in_threadpool(get_user_service().login, request)
    return success_response(result, "Login successful")


@router.post("/settings", response_model=ApiResponse)
async def update_settings(request: SettingsRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """Update any subset of the caller's settings. Unknown fields are ignored."""
    result = await run_in_threadpool(get_user_service().update_settings, user.uid, request)
    return success_response(result, "Settings updated successfully")


@router.get("/profile", response_model=ApiResponse)
async def get_profile(user: AuthenticatedUser = Depends(get_current_user)):
    result = await run_in_threadpool(get_user_service().get_profile, user.uid)
    return success_response(result)


@router.get("/suburbs", response_model=ApiResponse)
async def list_suburbs(user: AuthenticatedUser = Depends(get_current_user)):
    suburbs = suburb_list()
    return success_response({"suburbs": suburbs, "count": len(suburbs)})


@router.get("/categories", response_model=ApiResponse)
async def list_categories(user: AuthenticatedUser = Depends(get_current_user)):
    categories = category_list()
    return success_response({"categories": categories, "count": len(categories)})
