"""
User models for registration, login, settings and profile responses.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from sentinel.models.base import ApiModel, DocumentModel
from sentinel.utils.validation import DEFAULT_NOTIFICATION_CATEGORIES, DEFAULT_SHARE_DURATION


class RegisterRequest(ApiModel):
    """Model for creating a new account (POST /api/users/register)."""
    email: str = Field(..., description="Login email, must be unique")
    password: str = Field(..., description="At least 6 characters")
    suburb: str = Field(..., description="One of the supported suburbs")
    trusted_contacts: List[str] = Field(default_factory=list, description="Emails notified on SOS")
    fcm_token: Optional[str] = Field(None, description="Device token for push notifications")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "thandi@example.org",
                "password": "s3cret!",
                "suburb": "Walmer",
                "trustedContacts": ["sipho@example.org"],
                "fcmToken": None,
            }
        }


class LoginRequest(ApiModel):
    email: str
    password: str
    fcm_token: Optional[str] = None


class SettingsRequest(ApiModel):
    """All fields optional; only the ones present are updated."""
    suburb: Optional[str] = None
    notification_categories: Optional[List[str]] = None
    dark_mode: Optional[bool] = None
    anonymous_mode: Optional[bool] = None
    trusted_contacts: Optional[List[str]] = None
    location_sharing_duration: Optional[int] = None
    fcm_token: Optional[str] = None


class UserUpdate(ApiModel):
    """
    Closed set of user fields that may change after registration.

    Only explicitly set fields are written; unknown field names are rejected
    at construction time instead of silently turning into no-op writes.
    """
    suburb: Optional[str] = None
    notification_categories: Optional[List[str]] = None
    dark_mode: Optional[bool] = None
    anonymous_mode: Optional[bool] = None
    trusted_contacts: Optional[List[str]] = None
    location_sharing_duration: Optional[int] = None
    fcm_token: Optional[str] = None

    class Config:
        extra = "forbid"

    def is_empty(self) -> bool:
        return not self.model_fields_set

    def to_document(self) -> Dict:
        return self.model_dump(include=self.model_fields_set)

    def updated_fields(self) -> List[str]:
        """API (camelCase) names of the fields this update touches, in declaration order."""
        return [
            field.alias or name
            for name, field in type(self).model_fields.items()
            if name in self.model_fields_set
        ]


class User(DocumentModel):
    """
    Firestore `users` document. The document id is the Firebase Auth uid.
    """
    email: str
    suburb: str
    trusted_contacts: List[str] = Field(default_factory=list)
    notification_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_NOTIFICATION_CATEGORIES))
    dark_mode: bool = False
    anonymous_mode: bool = False
    groups: List[str] = Field(default_factory=list)
    location_sharing_duration: int = DEFAULT_SHARE_DURATION
    fcm_token: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def profile(self) -> Dict:
        """Profile safe to return to the owner (no trusted contacts, no device token)."""
        return {
            "userId": self.id,
            "email": self.email,
            "suburb": self.suburb,
            "notificationCategories": self.notification_categories,
            "darkMode": self.dark_mode,
            "anonymousMode": self.anonymous_mode,
            "locationSharingDuration": self.location_sharing_duration,
            "groups": self.groups,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class AuthenticatedUser(ApiModel):
    """Claims taken from a verified Firebase ID token."""
    uid: str
    email: Optional[str] = None
