"""
Firestore Repository - typed reads and writes for users, groups, posts,
panic alerts and location shares.

DESIGN PRINCIPLES:
- Ids and created_at timestamps are always assigned here, never by the client
- Absent documents come back as None; transport faults raise StoreError
- Proximity search is a post-filter over the newest posts, not a geo index
"""

from datetime import timedelta
from typing import Iterable, List, Optional

from firebase_admin import firestore

from sentinel.config.firebase import get_db
from sentinel.core.exceptions import StoreError
from sentinel.core.settings import settings
from sentinel.models.group import Group
from sentinel.models.location import LocationShare
from sentinel.models.panic import PanicAlert
from sentinel.models.post import Post
from sentinel.models.user import User, UserUpdate
from sentinel.utils.firestore_helpers import chunked, utcnow, where_filter
from sentinel.utils.geo import haversine_km
import logging

logger = logging.getLogger(__name__)

USERS = "users"
GROUPS = "groups"
POSTS = "posts"
PANIC_ALERTS = "panicAlerts"
LOCATION_SHARES = "locationShares"

IN_QUERY_LIMIT = 10  # Firestore "in" clause limit
GROUP_POSTS_LIMIT = 50


class FirestoreRepository:
    """
    Repository over the Firestore collections used by Sentinel API.
    """

    def __init__(self, db=None):
        self.db = db if db is not None else get_db()

    # Users

    def get_user(self, user_id: str) -> Optional[User]:
        try:
            doc = self.db.collection(USERS).document(user_id).get()
        except Exception as e:
            logger.error(f"Failed to get user {user_id}: {e}", exc_info=True)
            raise StoreError(f"Failed to get user {user_id}") from e

        if not doc.exists:
            return None
        return User.from_snapshot(doc)

    def is_group_member(self, user_id: str, group_id: str) -> bool:
        user = self.get_user(user_id)
        return user is not None and group_id in user.groups

    def list_users_by_suburb(self, suburb: str) -> List[User]:
        query = where_filter(self.db.collection(USERS), "suburb", "==", suburb)
        return self._stream(query, User, f"users in suburb {suburb}")

    def list_users_by_group(self, group_id: str) -> List[User]:
        query = where_filter(self.db.collection(USERS), "groups", "array_contains", group_id)
        return self._stream(query, User, f"users in group {group_id}")

    def list_users_by_notification_category(self, suburb: str, category: str) -> List[User]:
        query = where_filter(self.db.collection(USERS), "suburb", "==", suburb)
        query = where_filter(query, "notification_categories", "array_contains", category)
        return self._stream(query, User, f"users subscribed to {category} in {suburb}")

    def list_users_by_emails(self, emails: Iterable[str]) -> List[User]:
        """
        Resolve emails to user documents. Input is deduplicated and queried in
        chunks of IN_QUERY_LIMIT; unknown emails are simply absent from the result.
        """
        unique_emails = list(dict.fromkeys(emails))
        users: List[User] = []
        seen_ids = set()
        for chunk in chunked(unique_emails, IN_QUERY_LIMIT):
            query = where_filter(self.db.collection(USERS), "email", "in", chunk)
            for user in self._stream(query, User, "users by email"):
                if user.id not in seen_ids:
                    seen_ids.add(user.id)
                    users.append(user)
        return users

    def create_user(self, user: User) -> User:
        """Create the profile document keyed by the Firebase Auth uid."""
        now = utcnow()
        user.created_at = now
        user.updated_at = now
        try:
            self.db.collection(USERS).document(user.id).set(user.to_document())
        except Exception as e:
            logger.error(f"Failed to create user {user.id}: {e}", exc_info=True)
            raise StoreError("Failed to create user") from e

        logger.info(f"User created: {user.id}")
        return user

    def update_user(self, user_id: str, update: UserUpdate) -> List[str]:
        """
        Apply a partial update in a single write. updated_at is always stamped.

        Returns:
            API names of the fields that were written
        """
        document = update.to_document()
        document["updated_at"] = utcnow()
        try:
            self.db.collection(USERS).document(user_id).update(document)
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {e}", exc_info=True)
            raise StoreError(f"Failed to update user {user_id}") from e

        logger.info(f"User updated: {user_id} ({', '.join(update.updated_fields())})")
        return update.updated_fields()

    def add_user_to_group(self, user_id: str, group_id: str) -> None:
        try:
            self.db.collection(USERS).document(user_id).update({
                "groups": firestore.ArrayUnion([group_id]),
                "updated_at": utcnow(),
            })
        except Exception as e:
            logger.error(f"Failed to add user {user_id} to group {group_id}: {e}", exc_info=True)
            raise StoreError("Failed to join group") from e

    def clear_device_token(self, token: str) -> int:
        """
        Remove a dead FCM token from every user holding it.

        Returns:
            Number of user documents updated
        """
        query = where_filter(self.db.collection(USERS), "fcm_token", "==", token)
        cleared = 0
        try:
            for doc in query.stream():
                doc.reference.update({"fcm_token": None, "updated_at": utcnow()})
                cleared += 1
                logger.info(f"Removed invalid FCM token from user {doc.id}")
        except Exception as e:
            logger.error(f"Failed to clear FCM token: {e}", exc_info=True)
            raise StoreError("Failed to clear device token") from e
        return cleared

    # Groups

    def get_group(self, group_id: str) -> Optional[Group]:
        try:
            doc = self.db.collection(GROUPS).document(group_id).get()
        except Exception as e:
            logger.error(f"Failed to get group {group_id}: {e}", exc_info=True)
            raise StoreError(f"Failed to get group {group_id}") from e

        if not doc.exists:
            return None
        return Group.from_snapshot(doc)

    def create_group(self, group: Group) -> Group:
        ref = self.db.collection(GROUPS).document()
        group.id = ref.id
        group.created_at = utcnow()
        try:
            ref.set(group.to_document())
        except Exception as e:
            logger.error(f"Failed to create group: {e}", exc_info=True)
            raise StoreError("Failed to create group") from e

        logger.info(f"Group created: {group.id}")
        return group

    def create_group_with_owner(self, group: Group, owner_id: str) -> Group:
        """
        Create a group and add it to the owner's groups in one atomic batch,
        so a group never exists without its creator as a member.
        """
        now = utcnow()
        group_ref = self.db.collection(GROUPS).document()
        group.id = group_ref.id
        group.created_by = owner_id
        group.created_at = now

        batch = self.db.batch()
        batch.set(group_ref, group.to_document())
        batch.update(self.db.collection(USERS).document(owner_id), {
            "groups": firestore.ArrayUnion([group.id]),
            "updated_at": now,
        })
        try:
            batch.commit()
        except Exception as e:
            logger.error(f"Failed to create group for owner {owner_id}: {e}", exc_info=True)
            raise StoreError("Failed to create group") from e

        logger.info(f"Group created: {group.id} by user {owner_id}")
        return group

    def list_groups_by_suburb(self, suburb: str) -> List[Group]:
        query = where_filter(self.db.collection(GROUPS), "suburb", "==", suburb)
        return self._stream(query, Group, f"groups in suburb {suburb}")

    # Posts

    def create_post(self, post: Post) -> Post:
        ref = self.db.collection(POSTS).document()
        post.id = ref.id
        post.created_at = utcnow()
        try:
            ref.set(post.to_document())
        except Exception as e:
            logger.error(f"Failed to create post: {e}", exc_info=True)
            raise StoreError("Failed to create post") from e

        logger.info(f"Post created: {post.id}")
        return post

    def list_posts(
        self,
        suburb: Optional[str] = None,
        group_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 50,
    ) -> List[Post]:
        """
        Recent posts, newest first.

        Group posts are filtered by group only; otherwise category and suburb
        filters apply when given. Only posts from the last POST_WINDOW_DAYS
        are returned.
        """
        cutoff = utcnow() - timedelta(days=settings.POST_WINDOW_DAYS)
        query = where_filter(self.db.collection(POSTS), "created_at", ">", cutoff)

        if group_id:
            query = where_filter(query, "group_id", "==", group_id)
        else:
            if category:
                query = where_filter(query, "category", "==", category)
            if suburb:
                query = where_filter(query, "suburb", "==", suburb)

        query = query.order_by("created_at", direction=firestore.Query.DESCENDING).limit(limit)
        return self._stream(query, Post, f"posts (suburb={suburb}, group={group_id}, category={category})")

    def list_posts_by_location(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        category: Optional[str] = None,
    ) -> List[Post]:
        """
        Posts within radius_km of (latitude, longitude).

        Candidates are the newest PROXIMITY_CANDIDATE_LIMIT posts in the window,
        regardless of suburb; older posts are not searched.
        """
        candidates = self.list_posts(category=category, limit=settings.PROXIMITY_CANDIDATE_LIMIT)
        return [
            post for post in candidates
            if post.location is not None
            and haversine_km(latitude, longitude, post.location.latitude, post.location.longitude) <= radius_km
        ]

    def list_group_posts(self, group_id: str) -> List[Post]:
        query = where_filter(self.db.collection(POSTS), "group_id", "==", group_id)
        query = query.order_by("created_at", direction=firestore.Query.DESCENDING).limit(GROUP_POSTS_LIMIT)
        return self._stream(query, Post, f"posts for group {group_id}")

    # Panic alerts

    def create_panic_alert(self, alert: PanicAlert) -> PanicAlert:
        ref = self.db.collection(PANIC_ALERTS).document()
        alert.id = ref.id
        alert.created_at = utcnow()
        try:
            ref.set(alert.to_document())
        except Exception as e:
            logger.error(f"Failed to create panic alert: {e}", exc_info=True)
            raise StoreError("Failed to create panic alert") from e

        logger.info(f"Panic alert created: {alert.id}")
        return alert

    def list_recent_panic_alerts(self, user_id: str, hours: int = 24) -> List[PanicAlert]:
        cutoff = utcnow() - timedelta(hours=hours)
        query = where_filter(self.db.collection(PANIC_ALERTS), "user_id", "==", user_id)
        query = where_filter(query, "created_at", ">", cutoff)
        query = query.order_by("created_at", direction=firestore.Query.DESCENDING)
        return self._stream(query, PanicAlert, f"panic alerts for user {user_id}")

    # Location shares

    def create_location_share(self, share: LocationShare) -> LocationShare:
        ref = self.db.collection(LOCATION_SHARES).document()
        now = utcnow()
        share.id = ref.id
        share.created_at = now
        share.expires_at = now + timedelta(minutes=share.duration)
        try:
            ref.set(share.to_document())
        except Exception as e:
            logger.error(f"Failed to create location share: {e}", exc_info=True)
            raise StoreError("Failed to create location share") from e

        logger.info(f"Location share created: {share.id}")
        return share

    def delete_expired_location_shares(self) -> bool:
        """
        Delete every share whose expires_at has passed, in one atomic batch.

        Never raises: returns False (and logs) if the query or commit fails,
        in which case nothing was deleted.
        """
        try:
            query = where_filter(self.db.collection(LOCATION_SHARES), "expires_at", "<", utcnow())
            expired = list(query.stream())
            batch = self.db.batch()
            for doc in expired:
                batch.delete(doc.reference)
            batch.commit()
            logger.info(f"Deleted {len(expired)} expired location shares")
            return True
        except Exception as e:
            logger.error(f"Failed to delete expired location shares: {e}", exc_info=True)
            return False

    def _stream(self, query, model, description: str) -> list:
        try:
            return [model.from_snapshot(doc) for doc in query.stream()]
        except Exception as e:
            logger.error(f"Failed to list {description}: {e}", exc_info=True)
            raise StoreError(f"Failed to list {description}") from e


# Global repository instance (singleton pattern)
_repository = None


def get_repository() -> FirestoreRepository:
    """
    Get or create FirestoreRepository singleton instance.

    Returns:
        FirestoreRepository: The global repository instance
    """
    global _repository
    if _repository is None:
        _repository = FirestoreRepository()
    return _repository
