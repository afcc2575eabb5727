"""
Post endpoints - community alerts, feeds, proximity search and hotspots.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from sentinel.core.auth import get_current_user
from sentinel.models.base import ApiResponse, success_response
from sentinel.models.post import PostRequest
from sentinel.models.user import AuthenticatedUser
from sentinel.services.post_service import get_post_service

router = APIRouter(prefix="/api/posts", tags=["Posts"])


@router.post("", response_model=ApiResponse)
async def create_post(request: PostRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """
    Create an alert in a suburb, optionally inside a group.

    Group members (or suburb subscribers to the category) are notified.
    """
    result = await run_in_threadpool(get_post_service().create_post, user.uid, request)
    return success_response(result, "Post created successfully")


@router.get("", response_model=ApiResponse)
async def list_posts(
    group_id: Optional[str] = Query(None, alias="groupId"),
    category: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
):
    result = await run_in_threadpool(get_post_service().list_posts, user.uid, group_id, category, limit)
    return success_response(result)


@router.get("/location", response_model=ApiResponse)
async def list_posts_by_location(
    latitude: float = Query(...),
    longitude: float = Query(...),
    radius: float = Query(5.0, description="Search radius in km (0.1 - 20)"),
    category: Optional[str] = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
):
    result = await run_in_threadpool(
        get_post_service().list_posts_by_location, user.uid, latitude, longitude, radius, category
    )
    return success_response(result)


@router.get("/hotspots", response_model=ApiResponse)
async def get_hotspots(
    suburb: Optional[str] = Query(None, description="Defaults to the caller's suburb"),
    category: Optional[str] = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
):
    result = await run_in_threadpool(get_post_service().get_hotspots, user.uid, suburb, category)
    return success_response(result)
