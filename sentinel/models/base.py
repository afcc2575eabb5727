"""
Shared pydantic models: response envelope and geo location.

DESIGN PRINCIPLE:
- Models reflect data structure, not business logic
- API JSON is camelCase, Firestore documents are snake_case
"""

from datetime import datetime, timezone
from typing import Any, Optional

from firebase_admin import firestore
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    Base for request and domain models.
    Accepts camelCase or snake_case on input, dumps camelCase with by_alias.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ApiResponse(BaseModel):
    """
    Uniform response envelope returned by every endpoint.
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def success_response(data: Any = None, message: Optional[str] = None) -> ApiResponse:
    return ApiResponse(success=True, data=data, message=message)


def error_response(error: str) -> dict:
    return ApiResponse(success=False, error=error).model_dump(mode="json")


class GeoLocation(ApiModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    def to_geopoint(self) -> firestore.GeoPoint:
        return firestore.GeoPoint(self.latitude, self.longitude)

    @classmethod
    def from_geopoint(cls, value) -> Optional["GeoLocation"]:
        """Accepts a Firestore GeoPoint, a {latitude, longitude} dict or None."""
        if value is None:
            return None
        if isinstance(value, dict):
            return cls(latitude=value["latitude"], longitude=value["longitude"])
        return cls(latitude=value.latitude, longitude=value.longitude)

    def label(self) -> str:
        return f"[{self.latitude:.4f}, {self.longitude:.4f}]"


class DocumentModel(ApiModel):
    """
    A model stored as one Firestore document. The document id lives in `id`
    and is never written into the document body.
    """
    id: str = ""

    @classmethod
    def from_snapshot(cls, snapshot):
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        if "location" in data:
            data["location"] = GeoLocation.from_geopoint(data["location"])
        return cls.model_validate(data)

    def to_document(self) -> dict:
        document = self.model_dump(exclude={"id"})
        location = getattr(self, "location", None)
        if "location" in document:
            document["location"] = location.to_geopoint() if location else None
        return document
