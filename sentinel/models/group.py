"""
Group models - neighbourhood groups scoped to one suburb.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from sentinel.models.base import ApiModel, DocumentModel


class CreateGroupRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    suburb: str


class JoinGroupRequest(ApiModel):
    group_id: str = Field(..., min_length=1)


class Group(DocumentModel):
    """Firestore `groups` document."""
    name: str
    suburb: str
    created_by: str
    created_at: Optional[datetime] = None
