"""
Post models - community alerts scoped to a suburb or a group.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from sentinel.models.base import ApiModel, DocumentModel, GeoLocation
from sentinel.utils.validation import DEFAULT_CATEGORY


class PostRequest(ApiModel):
    """
    Model for creating a new post (incoming POST request).
    `anonymous` falls back to the author's anonymous-mode setting when omitted.
    """
    title: str = Field(..., description="At least 5 characters after trimming")
    description: Optional[str] = Field(None, max_length=2000)
    category: Optional[str] = Field(None, description="Defaults to General")
    suburb: str
    anonymous: Optional[bool] = None
    group_id: Optional[str] = None
    media_url: Optional[str] = Field(None, max_length=2048)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Suspicious car outside",
                "description": "Grey sedan idling near the school gate for an hour.",
                "category": "Suspicious Activity",
                "suburb": "Walmer",
                "anonymous": False,
                "latitude": -33.9783,
                "longitude": 25.5853,
            }
        }


class Post(DocumentModel):
    """Firestore `posts` document. user_id is None for anonymous posts."""
    user_id: Optional[str] = None
    title: str
    description: str = ""
    category: str = DEFAULT_CATEGORY
    suburb: str
    group_id: Optional[str] = None
    media_url: Optional[str] = None
    location: Optional[GeoLocation] = None
    created_at: Optional[datetime] = None
