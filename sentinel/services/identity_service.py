"""
Identity Service - thin wrapper over Firebase Authentication.

Admin operations (token verification, account lookup/creation) go through
firebase_admin.auth. Password checks are not available in the Admin SDK, so
they use the Identity Toolkit REST endpoint when FIREBASE_WEB_API_KEY is set.
"""

from typing import Dict, Optional

import requests
from firebase_admin import auth

from sentinel.config.firebase import initialize_firebase
from sentinel.core.exceptions import AuthenticationError, ConflictError, IdentityError
from sentinel.core.settings import settings
from sentinel.models.user import AuthenticatedUser
import logging

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# Identity Toolkit error codes that mean "wrong email or password"
CREDENTIAL_ERRORS = {"EMAIL_NOT_FOUND", "INVALID_PASSWORD", "INVALID_LOGIN_CREDENTIALS", "USER_DISABLED"}


class IdentityService:
    """
    Service for Firebase Auth lookups, account creation and credential checks.
    """

    def __init__(self):
        initialize_firebase()

    def verify_token(self, id_token: str) -> AuthenticatedUser:
        """
        Verify a Firebase ID token (issuer https://securetoken.google.com/<project>).

        Raises:
            AuthenticationError: token missing, malformed, expired or revoked
        """
        try:
            claims = auth.verify_id_token(id_token)
        except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, auth.RevokedIdTokenError, ValueError) as e:
            logger.info(f"Rejected ID token: {e}")
            raise AuthenticationError("Invalid or expired token")
        except auth.CertificateFetchError as e:
            logger.error(f"Could not fetch token signing certificates: {e}", exc_info=True)
            raise IdentityError("Token verification unavailable") from e

        uid = claims.get("uid") or claims.get("user_id")
        if not uid:
            raise AuthenticationError("User not authenticated")
        return AuthenticatedUser(uid=uid, email=claims.get("email"))

    def lookup_by_email(self, email: str) -> Optional[str]:
        """
        Returns:
            The uid for this email, or None if no account exists
        """
        try:
            return auth.get_user_by_email(email).uid
        except auth.UserNotFoundError:
            return None
        except Exception as e:
            logger.error(f"Firebase auth lookup failed: {e}", exc_info=True)
            raise IdentityError("Identity lookup failed") from e

    def create_account(self, email: str, password: str) -> str:
        """
        Returns:
            The uid of the new account
        """
        try:
            record = auth.create_user(email=email, password=password, email_verified=False, disabled=False)
        except auth.EmailAlreadyExistsError:
            raise ConflictError("User with this email already exists")
        except Exception as e:
            logger.error(f"Firebase auth error during registration: {e}", exc_info=True)
            raise IdentityError("Failed to create user account") from e

        logger.info(f"Identity account created: {record.uid}")
        return record.uid

    def delete_account(self, uid: str) -> None:
        try:
            auth.delete_user(uid)
            logger.info(f"Identity account deleted: {uid}")
        except Exception as e:
            logger.error(f"Failed to delete identity account {uid}: {e}", exc_info=True)

    @property
    def can_verify_passwords(self) -> bool:
        return bool(settings.FIREBASE_WEB_API_KEY)

    def verify_credentials(self, email: str, password: str) -> Dict[str, str]:
        """
        Check an email/password pair with the Identity Toolkit.

        Returns:
            {"uid": ..., "id_token": ...} on success

        Raises:
            AuthenticationError: wrong email or password
            IdentityError: the endpoint could not be reached
        """
        try:
            resp = requests.post(
                SIGN_IN_URL,
                params={"key": settings.FIREBASE_WEB_API_KEY},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=settings.IDENTITY_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            logger.error(f"Identity Toolkit request failed: {e}", exc_info=True)
            raise IdentityError("Credential verification unavailable") from e

        if resp.status_code == 200:
            data = resp.json()
            return {"uid": data["localId"], "id_token": data["idToken"]}

        error_code = ""
        try:
            error_code = resp.json().get("error", {}).get("message", "")
        except ValueError:
            pass

        # Codes sometimes carry a suffix, e.g. "INVALID_PASSWORD : ..."
        if error_code.split(" ")[0] in CREDENTIAL_ERRORS:
            raise AuthenticationError("Invalid email or password")

        logger.error(f"Identity Toolkit returned {resp.status_code}: {error_code}")
        raise IdentityError("Credential verification failed")


# Global service instance (singleton pattern)
_identity_service = None


def get_identity_service() -> IdentityService:
    """Get or create IdentityService singleton."""
    global _identity_service
    if _identity_service is None:
        _identity_service = IdentityService()
    return _identity_service
