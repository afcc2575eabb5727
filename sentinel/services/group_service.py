"""
Group Service - neighbourhood groups and their feeds.
"""

from typing import Dict, Optional

from sentinel.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from sentinel.models.group import CreateGroupRequest, Group, JoinGroupRequest
from sentinel.services.firestore_repository import FirestoreRepository, get_repository
from sentinel.services.user_service import require_suburb, require_user
import logging

logger = logging.getLogger(__name__)


class GroupService:
    """
    Use cases for creating, joining and reading groups.
    """

    def __init__(self, repository: Optional[FirestoreRepository] = None):
        self.repository = repository or get_repository()

    def create_group(self, user_id: str, request: CreateGroupRequest) -> Dict:
        """
        Create a group in a suburb. The creator becomes a member in the same
        batch write as the group itself.
        """
        logger.info(f"Group creation attempt by user: {user_id}")

        name = request.name.strip()
        if not name:
            raise ValidationError("Group name is required")
        suburb = require_suburb(request.suburb)
        require_user(self.repository, user_id)

        group = self.repository.create_group_with_owner(
            Group(name=name, suburb=suburb, created_by=user_id),
            owner_id=user_id,
        )

        logger.info(f"Group created successfully: {group.id} by user {user_id}")
        return {"groupId": group.id}

    def join_group(self, user_id: str, request: JoinGroupRequest) -> Dict:
        logger.info(f"Group join attempt by user: {user_id} for group: {request.group_id}")

        group = self.repository.get_group(request.group_id)
        if group is None:
            raise NotFoundError("Group not found")

        user = require_user(self.repository, user_id)
        if group.id in user.groups:
            raise ValidationError("User is already a member of this group")

        self.repository.add_user_to_group(user_id, group.id)

        logger.info(f"User {user_id} joined group {group.id} successfully")
        return {"success": True}

    def list_groups(self, user_id: str) -> Dict:
        """Groups in the caller's own suburb."""
        user = require_user(self.repository, user_id)
        groups = self.repository.list_groups_by_suburb(user.suburb)

        logger.info(f"Retrieved {len(groups)} groups for user {user_id}")
        return {"groups": [group.to_api() for group in groups], "count": len(groups)}

    def list_group_posts(self, user_id: str, group_id: str) -> Dict:
        if not self.repository.is_group_member(user_id, group_id):
            raise AuthorizationError("User is not a member of the specified group")

        posts = self.repository.list_group_posts(group_id)

        logger.info(f"Retrieved {len(posts)} posts for group {group_id}")
        return {"posts": [post.to_api() for post in posts], "count": len(posts)}


# Global service instance (singleton pattern)
_group_service = None


def get_group_service() -> GroupService:
    """Get or create GroupService singleton."""
    global _group_service
    if _group_service is None:
        _group_service = GroupService()
    return _group_service
