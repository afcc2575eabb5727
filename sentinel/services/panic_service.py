"""
Panic Service - SOS alerts to a user's trusted contacts.

An alert is durable once stored: delivery problems are logged and never turn
a stored alert into a failed request.
"""

from typing import Dict, Optional

from sentinel.core.exceptions import ValidationError
from sentinel.models.base import GeoLocation
from sentinel.models.panic import DEFAULT_PANIC_MESSAGE, PanicAlert, PanicRequest
from sentinel.models.user import User
from sentinel.services.firestore_repository import FirestoreRepository, get_repository
from sentinel.services.notification_service import NotificationService, get_notification_service
from sentinel.services.user_service import require_user
from sentinel.utils.validation import is_valid_coordinate
import logging

logger = logging.getLogger(__name__)

MAX_RECENT_HOURS = 168


class PanicService:
    """
    Use cases for SOS alerts.
    """

    def __init__(
        self,
        repository: Optional[FirestoreRepository] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.repository = repository or get_repository()
        self.notifier = notifier or get_notification_service()

    def send_panic_alert(self, user_id: str, request: PanicRequest) -> Dict:
        logger.info(f"Panic alert attempt by user: {user_id}")

        user = require_user(self.repository, user_id)
        if not user.trusted_contacts:
            raise ValidationError("No trusted contacts configured")

        location = self._alert_location(user_id, request)
        message = (request.message or "").strip() or DEFAULT_PANIC_MESSAGE

        alert = self.repository.create_panic_alert(PanicAlert(
            user_id=user_id,
            message=message,
            location=location,
        ))

        self._send_panic_notifications(user, alert)

        logger.info(f"Panic alert sent successfully: {alert.id} by user {user_id}")
        return {"success": True, "panicId": alert.id}

    def _alert_location(self, user_id: str, request: PanicRequest) -> Optional[GeoLocation]:
        """An SOS is never refused over its coordinates; a partial or invalid pair is dropped."""
        latitude, longitude = request.latitude, request.longitude
        if latitude is None and longitude is None:
            return None
        if latitude is None or longitude is None or not is_valid_coordinate(latitude, longitude):
            logger.warning(
                f"Dropping unusable panic location for user {user_id}: latitude={latitude}, longitude={longitude}"
            )
            return None
        return GeoLocation(latitude=latitude, longitude=longitude)

    def list_recent_alerts(self, user_id: str, hours: int = 24) -> Dict:
        if hours < 1 or hours > MAX_RECENT_HOURS:
            raise ValidationError(f"Hours must be between 1 and {MAX_RECENT_HOURS}")

        alerts = self.repository.list_recent_panic_alerts(user_id, hours)
        return {"alerts": [alert.to_api() for alert in alerts], "count": len(alerts)}

    def _send_panic_notifications(self, user: User, alert: PanicAlert) -> None:
        try:
            contacts = self.repository.list_users_by_emails(user.trusted_contacts)
            delivered = self.notifier.notify_panic(alert, user, contacts)
            logger.info(
                f"Panic notifications for user {user.id}: {len(contacts)} contacts resolved, delivered={delivered}"
            )
        except Exception as e:
            logger.error(f"Error sending panic notifications for user {user.id}: {e}", exc_info=True)


# Global service instance (singleton pattern)
_panic_service = None


def get_panic_service() -> PanicService:
    """Get or create PanicService singleton."""
    global _panic_service
    if _panic_service is None:
        _panic_service = PanicService()
    return _panic_service
