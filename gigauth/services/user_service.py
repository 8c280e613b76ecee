"""User identity lookups and password authentication."""

import logging
from functools import lru_cache

from werkzeug.security import check_password_hash, generate_password_hash

from gigauth.errors import (
    InvalidCredentialsError,
    UserExistsError,
    UserInactiveError,
    UserNotFoundError,
    ValidationError,
)
from gigauth.models.user import User

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_password_hash():
    return generate_password_hash("gigauth-dummy-password")


class UserService:
    """Resolves users by ID and authenticates email/password logins."""

    def __init__(self, user_repository, password_validator=None):
        self.user_repository = user_repository
        self.password_validator = password_validator

    def get_user_by_id(self, user_id):
        """Get an active user by ID.

        Raises:
            UserNotFoundError: no user with that ID
            UserInactiveError: the user exists but is deactivated
        """
        user = self.user_repository.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(internal=f"no user with id {user_id}")
        if not user.is_active:
            raise UserInactiveError()
        return user

    def get_user_by_email(self, email):
        if not email:
            return None
        return self.user_repository.get_by_email(email.strip().lower())

    def authenticate_with_password(self, email, password):
        """Return the user for a valid email/password pair.

        A hash comparison always runs, even for unknown or password-less
        accounts, so response timing does not reveal which emails exist.
        """
        user = self.get_user_by_email(email)

        if user is None or not user.password_hash:
            check_password_hash(_dummy_password_hash(), password or "")
            raise InvalidCredentialsError()

        if not user.check_password(password or ""):
            logger.info(f"Failed password login for user {user.id}")
            raise InvalidCredentialsError()

        if not user.is_active:
            raise UserInactiveError()

        return user

    def create_user_with_password(self, email, password, first_name=None, last_name=None):
        """Create a password user after running the password policy."""
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required")

        if self.password_validator is not None:
            result = self.password_validator.validate_password(password)
            if not result.valid:
                raise ValidationError("Password does not meet requirements", details=result.errors)
            for warning in result.warnings:
                logger.warning(f"Password check for new account degraded: {warning}")

        if self.user_repository.get_by_email(email) is not None:
            raise UserExistsError(internal=f"duplicate email: {email}")

        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            email_verified=False,
        )
        user.set_password(password)
        return self.user_repository.create_with_defaults(user)

    def create_user_without_password(self, email, *related):
        """Create a password-less user (passkey sign-up) with default preferences."""
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required")
        if self.user_repository.get_by_email(email) is not None:
            raise UserExistsError(internal=f"duplicate email: {email}")

        user = User(email=email, is_active=True, email_verified=False)
        return self.user_repository.create_with_defaults(user, *related)
