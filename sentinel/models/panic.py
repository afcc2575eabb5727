"""
Panic (SOS) alert models.
"""

from datetime import datetime
from typing import Optional

from sentinel.models.base import ApiModel, DocumentModel, GeoLocation

DEFAULT_PANIC_MESSAGE = "Emergency!"


class PanicRequest(ApiModel):
    message: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PanicAlert(DocumentModel):
    """Firestore `panicAlerts` document."""
    user_id: str
    message: str = DEFAULT_PANIC_MESSAGE
    location: Optional[GeoLocation] = None
    created_at: Optional[datetime] = None
