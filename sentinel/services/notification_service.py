"""
Notification Service - FCM push fan-out for posts, SOS alerts and location shares.

DESIGN PRINCIPLES:
- Delivery is best effort: failures are logged, never raised to the caller
- Tokens are sent in multicast batches of at most NOTIFICATION_BATCH_SIZE
- Tokens FCM reports as unregistered/invalid are cleared from user records
  in the background
- FCM data payload values must be strings
"""

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from sentinel.core.settings import settings
from sentinel.models.group import Group
from sentinel.models.location import LocationShare
from sentinel.models.panic import PanicAlert
from sentinel.models.post import Post
from sentinel.models.user import User
from sentinel.services.firestore_repository import FirestoreRepository, get_repository
from sentinel.utils.firestore_helpers import chunked, utcnow
import logging

logger = logging.getLogger(__name__)

INVALID_TOKEN_ERRORS = (messaging.UnregisteredError, firebase_exceptions.InvalidArgumentError)


def device_tokens(users: List[User]) -> List[str]:
    """FCM tokens of the users that have one, without duplicates."""
    return list(dict.fromkeys(user.fcm_token for user in users if user.fcm_token))


class NotificationService:
    """
    Builds notification payloads from domain events and sends them through FCM.
    """

    def __init__(
        self,
        repository: Optional[FirestoreRepository] = None,
        sender: Optional[Callable] = None,
        executor: Optional[Executor] = None,
    ):
        self.repository = repository or get_repository()
        self.sender = sender or messaging.send_each_for_multicast
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="fcm-cleanup")

    def notify(self, tokens: List[str], title: str, body: str, data: Optional[Dict[str, str]] = None) -> bool:
        """
        Send one notification to many devices.

        Returns:
            True if at least one device accepted the message
        """
        if not tokens:
            logger.warning("No FCM tokens provided for notification")
            return False

        success_count = 0
        invalid_tokens: List[str] = []

        try:
            for batch in chunked(list(tokens), settings.NOTIFICATION_BATCH_SIZE):
                response = self.sender(self._build_message(batch, title, body, data or {}))
                success_count += response.success_count

                if response.failure_count > 0:
                    for token, result in zip(batch, response.responses):
                        if result.success or result.exception is None:
                            continue
                        logger.error(f"FCM send error for token {token[:12]}...: {result.exception}")
                        if isinstance(result.exception, INVALID_TOKEN_ERRORS):
                            invalid_tokens.append(token)
        except Exception as e:
            logger.error(f"Error sending FCM notification: {e}", exc_info=True)
            return False
        finally:
            if invalid_tokens:
                self.executor.submit(self._cleanup_invalid_tokens, invalid_tokens)

        logger.info(f"FCM notifications sent. Total success: {success_count}")
        return success_count > 0

    def notify_post(self, post: Post, target_users: List[User], group: Optional[Group] = None) -> bool:
        tokens = device_tokens(target_users)
        if not tokens:
            return False

        scope = group.name if group is not None else post.suburb
        data = {
            "type": "post",
            "postId": post.id,
            "category": post.category,
            "suburb": post.suburb,
            "timestamp": utcnow().isoformat(),
        }
        if post.group_id:
            data["groupId"] = post.group_id

        return self.notify(tokens, f"New Alert in {scope}", post.title, data)

    def notify_panic(self, alert: PanicAlert, user: User, contacts: List[User]) -> bool:
        tokens = device_tokens(contacts)
        if not tokens:
            logger.warning(f"No FCM tokens found for trusted contacts of user {user.id}")
            return False

        body = alert.message
        data = {
            "type": "panic",
            "panicId": alert.id,
            "userId": user.id,
            "userEmail": user.email,
            "timestamp": utcnow().isoformat(),
        }
        if alert.location is not None:
            body = f"{body} at {alert.location.label()}"
            data["latitude"] = str(alert.location.latitude)
            data["longitude"] = str(alert.location.longitude)

        return self.notify(tokens, f"SOS Alert from {user.email}", body, data)

    def notify_location_share(self, share: LocationShare, user: User, contacts: List[User]) -> bool:
        tokens = device_tokens(contacts)
        if not tokens:
            return False

        body = f"Location shared for {share.duration} minutes"
        data = {
            "type": "location_share",
            "shareId": share.id,
            "userId": user.id,
            "userEmail": user.email,
            "duration": str(share.duration),
            "timestamp": utcnow().isoformat(),
        }
        if share.location is not None:
            body = f"{body} at {share.location.label()}"
            data["latitude"] = str(share.location.latitude)
            data["longitude"] = str(share.location.longitude)

        return self.notify(tokens, f"Location Shared by {user.email}", body, data)

    def _build_message(self, tokens: List[str], title: str, body: str, data: Dict[str, str]) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=tokens,
            notification=messaging.Notification(title=title, body=body),
            data=data,
            android=messaging.AndroidConfig(
                priority="high",
                notification=messaging.AndroidNotification(
                    channel_id=settings.ANDROID_CHANNEL_ID,
                    default_sound=True,
                    default_vibrate_timings=True,
                ),
            ),
            apns=messaging.APNSConfig(
                headers={"apns-priority": "10"},
                payload=messaging.APNSPayload(
                    aps=messaging.Aps(content_available=True, sound="default", badge=1),
                ),
            ),
        )

    def _cleanup_invalid_tokens(self, tokens: List[str]) -> None:
        for token in tokens:
            try:
                self.repository.clear_device_token(token)
            except Exception as e:
                logger.error(f"Error cleaning up invalid FCM token: {e}")


# Global service instance (singleton pattern)
_notification_service = None


def get_notification_service() -> NotificationService:
    """Get or create NotificationService singleton."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
