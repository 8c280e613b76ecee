import logging
from typing import Optional

from gigauth.models.user import User, OAuthAccount, UserPreferences

log = logging.getLogger(__name__)


class SqlAlchemyUserRepository:
    """Repository for User model database operations."""

    def __init__(self, db) -> None:
        self._session = db.session

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self._session.query(User).filter_by(id=user_id).one_or_none()

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self._session.query(User).filter_by(email=email).one_or_none()

    def create_with_defaults(self, user: User, *related) -> User:
        """Create a user, its default preferences and any related rows in one transaction.

        ``related`` entries are unsaved models with a ``user`` relationship
        (linked identities, passkey credentials); they are attached to the new
        user before the commit.
        """
        try:
            self._session.add(user)
            self._session.flush()
            self._session.add(UserPreferences(user_id=user.id))
            for entity in related:
                entity.user = user
                self._session.add(entity)
            self._session.commit()
            return user
        except Exception as e:
            self._session.rollback()
            log.error(f"Error creating user: {str(e)}")
            raise

    # Linked identities
    def get_oauth_account(self, provider: str, provider_user_id: str) -> Optional[OAuthAccount]:
        """Get a linked identity by provider subject."""
        return self._session.query(OAuthAccount).filter_by(
            provider=provider,
            provider_user_id=provider_user_id
        ).one_or_none()

    def add_oauth_account(self, account: OAuthAccount) -> OAuthAccount:
        """Link an external identity to an existing user."""
        try:
            self._session.add(account)
            self._session.commit()
            return account
        except Exception as e:
            self._session.rollback()
            log.error(f"Error linking {account.provider} account: {str(e)}")
            raise

