"""
Bearer-token authentication dependency.
"""

from typing import Optional

from fastapi import Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sentinel.core.exceptions import AuthenticationError
from sentinel.models.user import AuthenticatedUser
from sentinel.services.identity_service import get_identity_service

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Resolve the caller from a Firebase ID token.

    Raises:
        AuthenticationError: header missing or token rejected
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("User not authenticated")

    return await run_in_threadpool(get_identity_service().verify_token, credentials.credentials)
