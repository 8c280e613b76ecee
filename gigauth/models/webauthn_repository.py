import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import desc

from gigauth.models.webauthn import WebAuthnCredential, WebAuthnChallenge

log = logging.getLogger(__name__)


class SqlAlchemyWebAuthnRepository:
    """Repository for passkey credentials and ceremony challenges."""

    def __init__(self, db) -> None:
        self._session = db.session

    # Credentials
    def save_credential(self, credential: WebAuthnCredential) -> WebAuthnCredential:
        """Save or update a WebAuthn credential."""
        try:
            self._session.add(credential)
            self._session.commit()
            return credential
        except Exception as e:
            self._session.rollback()
            log.error(f"Error saving credential: {str(e)}")
            raise

    def get_credential_by_credential_id(self, credential_id: str) -> Optional[WebAuthnCredential]:
        """Get credential by its authenticator-assigned ID."""
        return self._session.query(WebAuthnCredential).filter_by(
            credential_id=credential_id
        ).one_or_none()

    def get_credentials_by_user_id(self, user_id: int) -> List[WebAuthnCredential]:
        """Get all credentials for a user, newest first."""
        return self._session.query(WebAuthnCredential).filter_by(user_id=user_id).order_by(
            desc(WebAuthnCredential.created_at), desc(WebAuthnCredential.id)
        ).all()

    def delete_credential_for_user(self, user_id: int, credential_pk: int) -> int:
        try:
            count = self._session.query(WebAuthnCredential).filter_by(
                id=credential_pk, user_id=user_id
            ).delete(synchronize_session=False)
            self._session.commit()
            return count
        except Exception as e:
            self._session.rollback()
            log.error(f"Error deleting credential: {str(e)}")
            raise

    def rename_credential_for_user(self, user_id: int, credential_pk: int, display_name: str) -> int:
        try:
            count = self._session.query(WebAuthnCredential).filter_by(
                id=credential_pk, user_id=user_id
            ).update({WebAuthnCredential.display_name: display_name}, synchronize_session=False)
            self._session.commit()
            return count
        except Exception as e:
            self._session.rollback()
            log.error(f"Error renaming credential: {str(e)}")
            raise

    # Challenges
    def save_challenge(self, challenge: WebAuthnChallenge) -> WebAuthnChallenge:
        try:
            self._session.add(challenge)
            self._session.commit()
            return challenge
        except Exception as e:
            self._session.rollback()
            log.error(f"Error storing challenge: {str(e)}")
            raise

    def get_live_challenge(self, challenge_id: str, operation: str, now: datetime) -> Optional[WebAuthnChallenge]:
        """Get a challenge matching id and operation that has not expired."""
        return self._session.query(WebAuthnChallenge).filter(
            WebAuthnChallenge.id == challenge_id,
            WebAuthnChallenge.operation == operation,
            WebAuthnChallenge.expires_at > now
        ).one_or_none()

    def delete_challenge(self, challenge_id: str) -> int:
        try:
            count = self._session.query(WebAuthnChallenge).filter_by(
                id=challenge_id
            ).delete(synchronize_session=False)
            self._session.commit()
            return count
        except Exception as e:
            self._session.rollback()
            log.error(f"Error deleting challenge: {str(e)}")
            raise

    def delete_challenges_expired_before(self, now: datetime) -> int:
        try:
            count = self._session.query(WebAuthnChallenge).filter(
                WebAuthnChallenge.expires_at <= now
            ).delete(synchronize_session=False)
            self._session.commit()
            return count
        except Exception as e:
            self._session.rollback()
            log.error(f"Error cleaning up challenges: {str(e)}")
            raise
