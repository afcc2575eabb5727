"""
Live location sharing models.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from sentinel.models.base import ApiModel, DocumentModel, GeoLocation


class LocationShareRequest(ApiModel):
    """`duration` falls back to the user's location-sharing setting when omitted."""
    contacts: List[str] = Field(default_factory=list)
    duration: Optional[int] = Field(None, description="Minutes, 15 to 120")
    latitude: float
    longitude: float


class LocationShare(DocumentModel):
    """
    Firestore `locationShares` document.
    expires_at is always created_at + duration and is set by the repository only.
    """
    user_id: str
    contacts: List[str] = Field(default_factory=list)
    duration: int
    location: Optional[GeoLocation] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
