"""
Post Service - create community alerts, list feeds, proximity search and
category hotspots.
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sentinel.core.exceptions import AuthorizationError, ValidationError
from sentinel.models.base import GeoLocation
from sentinel.models.post import Post, PostRequest
from sentinel.services.firestore_repository import FirestoreRepository, get_repository
from sentinel.services.notification_service import NotificationService, get_notification_service
from sentinel.services.user_service import require_suburb, require_user
from sentinel.utils.validation import DEFAULT_CATEGORY, canonical_category, is_valid_coordinate
import logging

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 5
MIN_RADIUS_KM = 0.1
MAX_RADIUS_KM = 20.0
HOTSPOT_POST_LIMIT = 100
HOTSPOT_RECENT_POSTS = 5

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def require_category(category: Optional[str]) -> Optional[str]:
    """Canonical category for a non-empty input, None for an empty one."""
    if not category:
        return None
    canonical = canonical_category(category)
    if canonical is None:
        raise ValidationError(f"Invalid category: {category}")
    return canonical


def optional_location(latitude: Optional[float], longitude: Optional[float]) -> Optional[GeoLocation]:
    """A GeoLocation when both coordinates are given, None when neither is."""
    if latitude is None and longitude is None:
        return None
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude must be provided together")
    if not is_valid_coordinate(latitude, longitude):
        raise ValidationError("Latitude must be between -90 and 90 and longitude between -180 and 180")
    return GeoLocation(latitude=latitude, longitude=longitude)


class PostService:
    """
    Use cases for posts (alerts).
    """

    def __init__(
        self,
        repository: Optional[FirestoreRepository] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.repository = repository or get_repository()
        self.notifier = notifier or get_notification_service()

    def create_post(self, user_id: str, request: PostRequest) -> Dict:
        logger.info(f"Post creation attempt by user: {user_id}")

        title = (request.title or "").strip()
        if len(title) < MIN_TITLE_LENGTH:
            raise ValidationError(f"Title is required and must be at least {MIN_TITLE_LENGTH} characters long")
        suburb = require_suburb(request.suburb)
        category = require_category(request.category) or DEFAULT_CATEGORY
        location = optional_location(request.latitude, request.longitude)

        user = require_user(self.repository, user_id)

        group = None
        if request.group_id:
            if request.group_id not in user.groups:
                raise AuthorizationError("User is not a member of the specified group")
            group = self.repository.get_group(request.group_id)
            if group is None or group.suburb != suburb:
                raise ValidationError("Suburb does not match the group's suburb")

        anonymous = request.anonymous if request.anonymous is not None else user.anonymous_mode

        post = self.repository.create_post(Post(
            user_id=None if anonymous else user_id,
            title=title,
            description=(request.description or "").strip(),
            category=category,
            suburb=suburb,
            group_id=request.group_id or None,
            media_url=request.media_url or None,
            location=location,
        ))

        self._send_post_notifications(post, group)

        logger.info(f"Post created successfully: {post.id} by user {user_id}")
        return {
            "postId": post.id,
            "anonymous": anonymous,
            "category": post.category,
            "suburb": post.suburb,
        }

    def list_posts(
        self,
        user_id: str,
        group_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> Dict:
        """
        Feed for the caller.

        Group feeds are returned as-is; suburb feeds only keep categories the
        user subscribes to.
        """
        user = require_user(self.repository, user_id)

        if group_id:
            if group_id not in user.groups:
                raise AuthorizationError("User is not a member of the specified group")
            posts = self.repository.list_posts(group_id=group_id, limit=limit)
        else:
            posts = self.repository.list_posts(
                suburb=user.suburb,
                category=require_category(category),
                limit=limit,
            )
            subscribed = set(user.notification_categories)
            posts = [post for post in posts if post.category in subscribed]

        logger.info(f"Retrieved {len(posts)} posts for user: {user_id}")
        return {"posts": [post.to_api() for post in posts], "count": len(posts)}

    def list_posts_by_location(
        self,
        user_id: str,
        latitude: float,
        longitude: float,
        radius: float = 5.0,
        category: Optional[str] = None,
    ) -> Dict:
        if not MIN_RADIUS_KM <= radius <= MAX_RADIUS_KM:
            raise ValidationError(f"Radius must be between {MIN_RADIUS_KM} and {MAX_RADIUS_KM} km")
        if not is_valid_coordinate(latitude, longitude):
            raise ValidationError("Latitude must be between -90 and 90 and longitude between -180 and 180")

        posts = self.repository.list_posts_by_location(latitude, longitude, radius, require_category(category))

        logger.info(
            f"Retrieved {len(posts)} posts near ({latitude}, {longitude}) for user: {user_id}"
        )
        return {"posts": [post.to_api() for post in posts], "count": len(posts), "radius": radius}

    def get_hotspots(self, user_id: str, suburb: Optional[str] = None, category: Optional[str] = None) -> Dict:
        """
        Count recent posts per category for a suburb, busiest category first.
        """
        user = require_user(self.repository, user_id)
        target_suburb = require_suburb(suburb or user.suburb)
        posts = self.repository.list_posts(
            suburb=target_suburb,
            category=require_category(category),
            limit=HOTSPOT_POST_LIMIT,
        )
        hotspots = build_hotspots(posts)

        logger.info(f"Retrieved hotspot data for suburb {target_suburb}: {len(hotspots)} categories")
        return {"suburb": target_suburb, "hotspots": hotspots}

    def _send_post_notifications(self, post: Post, group=None) -> None:
        """Notify group members or suburb subscribers. Never raises."""
        try:
            if post.group_id:
                targets = self.repository.list_users_by_group(post.group_id)
            else:
                targets = self.repository.list_users_by_notification_category(post.suburb, post.category)
            self.notifier.notify_post(post, targets, group)
            logger.info(f"Post notifications sent for post {post.id} to {len(targets)} users")
        except Exception as e:
            logger.error(f"Error sending post notifications for post {post.id}: {e}", exc_info=True)


def build_hotspots(posts: List[Post]) -> List[Dict]:
    by_category: Dict[str, List[Post]] = defaultdict(list)
    for post in posts:
        by_category[post.category].append(post)

    hotspots = []
    for category, category_posts in by_category.items():
        recent = sorted(category_posts, key=lambda p: p.created_at or _EPOCH, reverse=True)
        hotspots.append({
            "category": category,
            "count": len(category_posts),
            "recentPosts": [post.to_api() for post in recent[:HOTSPOT_RECENT_POSTS]],
        })

    hotspots.sort(key=lambda h: h["count"], reverse=True)
    return hotspots


# Global service instance (singleton pattern)
_post_service = None


def get_post_service() -> PostService:
    """Get or create PostService singleton."""
    global _post_service
    if _post_service is None:
        _post_service = PostService()
    return _post_service
