"""
User Service - registration, login, profile and settings.
"""

from typing import Dict, List, Optional

from sentinel.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from sentinel.models.user import LoginRequest, RegisterRequest, SettingsRequest, User, UserUpdate
from sentinel.services.firestore_repository import FirestoreRepository, get_repository
from sentinel.services.identity_service import IdentityService, get_identity_service
from sentinel.utils.validation import (
    canonical_category,
    canonical_suburb,
    dedupe,
    is_valid_duration,
    is_valid_email,
    suburb_list,
    category_list,
)
import logging

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def require_user(repository: FirestoreRepository, user_id: str) -> User:
    """Load a user profile or raise NotFoundError."""
    user = repository.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def require_suburb(suburb: Optional[str]) -> str:
    """Return the canonical suburb spelling or raise ValidationError listing the valid ones."""
    canonical = canonical_suburb(suburb)
    if canonical is None:
        raise ValidationError(f"Invalid suburb. Must be one of: {', '.join(suburb_list())}")
    return canonical


def validate_contacts(contacts: List[str], label: str = "trusted contact") -> List[str]:
    """Deduplicate and validate a list of contact emails."""
    contacts = dedupe(contact.strip() for contact in contacts)
    for contact in contacts:
        if not is_valid_email(contact):
            raise ValidationError(f"Invalid {label} email: {contact}")
    return contacts


class UserService:
    """
    Use cases for accounts and profile settings.
    """

    def __init__(
        self,
        repository: Optional[FirestoreRepository] = None,
        identity: Optional[IdentityService] = None,
    ):
        self.repository = repository or get_repository()
        self.identity = identity or get_identity_service()

    def register(self, request: RegisterRequest) -> Dict:
        """
        Create a Firebase Auth account and its profile document.

        All input is validated before anything is written.
        """
        email = request.email.strip()
        logger.info(f"Registration attempt for email: {email}")

        if not is_valid_email(email):
            raise ValidationError("Valid email address is required")
        if len(request.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        suburb = require_suburb(request.suburb)
        if not request.trusted_contacts:
            raise ValidationError("At least one trusted contact is required")
        trusted_contacts = validate_contacts(request.trusted_contacts)

        if self.identity.lookup_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        uid = self.identity.create_account(email, request.password)

        user = User(
            id=uid,
            email=email,
            suburb=suburb,
            trusted_contacts=trusted_contacts,
            fcm_token=request.fcm_token or None,
        )
        try:
            self.repository.create_user(user)
        except Exception:
            # Don't leave an account that can log in but has no profile
            self.identity.delete_account(uid)
            raise

        logger.info(f"User registered successfully: {uid}")
        return {"userId": uid, "email": user.email, "suburb": user.suburb}

    def login(self, request: LoginRequest) -> Dict:
        email = request.email.strip()
        logger.info(f"Login attempt for email: {email}")

        if not is_valid_email(email):
            raise ValidationError("Valid email address is required")
        if not request.password:
            raise ValidationError("Password is required")

        uid = self.identity.lookup_by_email(email)
        if uid is None:
            raise AuthenticationError("Invalid email or password")

        token = None
        if self.identity.can_verify_passwords:
            verified = self.identity.verify_credentials(email, request.password)
            uid = verified["uid"]
            token = verified["id_token"]

        user = self.repository.get_user(uid)
        if user is None:
            raise NotFoundError("User profile not found")

        if request.fcm_token:
            self.repository.update_user(uid, UserUpdate(fcm_token=request.fcm_token))

        logger.info(f"User logged in successfully: {uid}")
        response = {"user": user.profile()}
        if token:
            response["token"] = token
        return response

    def get_profile(self, user_id: str) -> Dict:
        return require_user(self.repository, user_id).profile()

    def update_settings(self, user_id: str, request: SettingsRequest) -> Dict:
        """
        Validate each provided field, stage it into a UserUpdate and apply
        everything in one write. Nothing is written if any field is invalid.
        """
        logger.info(f"Settings update attempt for user: {user_id}")
        require_user(self.repository, user_id)

        staged = {}

        if request.suburb is not None:
            staged["suburb"] = require_suburb(request.suburb)

        if request.notification_categories is not None:
            if not request.notification_categories:
                raise ValidationError("At least one notification category is required")
            invalid = [c for c in request.notification_categories if canonical_category(c) is None]
            if invalid:
                raise ValidationError(
                    f"Invalid categories: {', '.join(invalid)}. "
                    f"Valid categories: {', '.join(category_list())}"
                )
            staged["notification_categories"] = dedupe(
                canonical_category(c) for c in request.notification_categories
            )

        if request.dark_mode is not None:
            staged["dark_mode"] = request.dark_mode

        if request.anonymous_mode is not None:
            staged["anonymous_mode"] = request.anonymous_mode

        if request.trusted_contacts is not None:
            if not request.trusted_contacts:
                raise ValidationError("At least one trusted contact is required")
            staged["trusted_contacts"] = validate_contacts(request.trusted_contacts)

        if request.location_sharing_duration is not None:
            if not is_valid_duration(request.location_sharing_duration):
                raise ValidationError("Location sharing duration must be between 15 and 120 minutes")
            staged["location_sharing_duration"] = request.location_sharing_duration

        if request.fcm_token:
            staged["fcm_token"] = request.fcm_token

        update = UserUpdate(**staged)
        if update.is_empty():
            raise ValidationError("No valid settings provided for update")

        updated_fields = self.repository.update_user(user_id, update)
        logger.info(f"Settings updated successfully for user: {user_id}")
        return {"success": True, "updatedFields": updated_fields}


# Global service instance (singleton pattern)
_user_service = None


def get_user_service() -> UserService:
    """
    Get or create UserService singleton instance.

    Returns:
        UserService: The global user service instance
    """
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
