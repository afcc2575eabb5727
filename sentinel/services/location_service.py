"""
Location Service - time-boxed live location sharing with contacts.
"""

from typing import Dict, Optional

from sentinel.core.exceptions import ValidationError
from sentinel.models.base import GeoLocation
from sentinel.models.location import LocationShare, LocationShareRequest
from sentinel.models.user import User
from sentinel.services.firestore_repository import FirestoreRepository, get_repository
from sentinel.services.notification_service import NotificationService, get_notification_service
from sentinel.services.user_service import require_user, validate_contacts
from sentinel.utils.validation import is_valid_coordinate, is_valid_duration
import logging

logger = logging.getLogger(__name__)


class LocationService:
    """
    Use cases for location shares and the expired-share sweep.
    """

    def __init__(
        self,
        repository: Optional[FirestoreRepository] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.repository = repository or get_repository()
        self.notifier = notifier or get_notification_service()

    def share_location(self, user_id: str, request: LocationShareRequest) -> Dict:
        logger.info(f"Location share attempt by user: {user_id}")

        user = require_user(self.repository, user_id)

        contacts = validate_contacts(request.contacts, label="contact")

        duration = request.duration if request.duration is not None else user.location_sharing_duration
        if not is_valid_duration(duration):
            raise ValidationError("Location sharing duration must be between 15 and 120 minutes")

        if not is_valid_coordinate(request.latitude, request.longitude):
            raise ValidationError("Latitude must be between -90 and 90 and longitude between -180 and 180")

        share = self.repository.create_location_share(LocationShare(
            user_id=user_id,
            contacts=contacts,
            duration=duration,
            location=GeoLocation(latitude=request.latitude, longitude=request.longitude),
        ))

        self._send_share_notifications(user, share)

        logger.info(f"Location shared successfully: {share.id} by user {user_id}")
        return {"shareId": share.id, "expiresAt": share.expires_at.isoformat()}

    def sweep_expired_shares(self) -> bool:
        return self.repository.delete_expired_location_shares()

    def _send_share_notifications(self, user: User, share: LocationShare) -> None:
        try:
            contacts = self.repository.list_users_by_emails(share.contacts)
            self.notifier.notify_location_share(share, user, contacts)
        except Exception as e:
            logger.error(f"Error sending location share notifications for user {user.id}: {e}", exc_info=True)


# Global service instance (singleton pattern)
_location_service = None


def get_location_service() -> LocationService:
    """Get or create LocationService singleton."""
    global _location_service
    if _location_service is None:
        _location_service = LocationService()
    return _location_service
