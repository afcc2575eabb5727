"""
Group endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from sentinel.core.auth import get_current_user
from sentinel.models.base import ApiResponse, success_response
from sentinel.models.group import CreateGroupRequest, JoinGroupRequest
from sentinel.models.user import AuthenticatedUser
from sentinel.services.group_service import get_group_service

router = APIRouter(prefix="/api/groups", tags=["Groups"])


@router.post("/create", response_model=ApiResponse)
async def create_group(request: CreateGroupRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """Create a group; the creator becomes its first member."""
    result = await run_in_threadpool(get_group_service().create_group, user.uid, request)
    return success_response(result, "Group created successfully")


@router.post("/join", response_model=ApiResponse)
async def join_group(request: JoinGroupRequest, user: AuthenticatedUser = Depends(get_current_user)):
    result = await run_in_threadpool(get_group_service().join_group, user.uid, request)
    return success_response(result, "Joined group successfully")


@router.get("", response_model=ApiResponse)
async def list_groups(user: AuthenticatedUser = Depends(get_current_user)):
    """Groups in the caller's suburb."""
    result = await run_in_threadpool(get_group_service().list_groups, user.uid)
    return success_response(result)


@router.get("/{group_id}/posts", response_model=ApiResponse)
async def list_group_posts(group_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    result = await run_in_threadpool(get_group_service().list_group_posts, user.uid, group_id)
    return success_response(result)
