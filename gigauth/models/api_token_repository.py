import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, desc, or_

from gigauth.models.api_token import APIToken

log = logging.getLogger(__name__)


class SqlAlchemyApiTokenRepository:
    """Repository for API token database operations."""

    def __init__(self, db) -> None:
        self._session = db.session

    def save(self, token: APIToken) -> APIToken:
        try:
            self._session.add(token)
            self._session.commit()
            return token
        except Exception as e:
            self._session.rollback()
            log.error(f"Error saving API token: {str(e)}")
            raise

    def get_by_hash(self, token_hash: str) -> Optional[APIToken]:
        """Get a token by the digest of its raw value."""
        return self._session.query(APIToken).filter_by(token_hash=token_hash).one_or_none()

    def get_for_user(self, user_id: int, token_id: int) -> Optional[APIToken]:
        """Get a token only if it belongs to the given user."""
        return self._session.query(APIToken).filter_by(id=token_id, user_id=user_id).one_or_none()

    def list_active_for_user(self, user_id: int) -> List[APIToken]:
        """Non-revoked tokens for a user, newest first."""
        return self._session.query(APIToken).filter(
            and_(
                APIToken.user_id == user_id,
                APIToken.revoked_at.is_(None)
            )
        ).order_by(desc(APIToken.created_at), desc(APIToken.id)).all()

    def revoke_for_user(self, user_id: int, token_id: int, revoked_at: datetime) -> int:
        """Mark a user's live token revoked. Returns the number of rows changed."""
        try:
            count = self._session.query(APIToken).filter(
                and_(
                    APIToken.id == token_id,
                    APIToken.user_id == user_id,
                    APIToken.revoked_at.is_(None)
                )
            ).update({APIToken.revoked_at: revoked_at}, synchronize_session=False)
            self._session.commit()
            return count
        except Exception as e:
            self._session.rollback()
            log.error(f"Error revoking API token {token_id}: {str(e)}")
            raise

    def touch_last_used(self, token_id: int, used_at: datetime) -> None:
        try:
            self._session.query(APIToken).filter_by(id=token_id).update(
                {APIToken.last_used_at: used_at}, synchronize_session=False
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def delete_expired_before(self, now: datetime, cutoff: datetime) -> int:
        """Delete tokens expired, or revoked, before ``cutoff``."""
        try:
            count = self._session.query(APIToken).filter(
                or_(
                    and_(APIToken.expires_at < now, APIToken.expires_at < cutoff),
                    and_(APIToken.revoked_at.isnot(None), APIToken.revoked_at < cutoff)
                )
            ).delete(synchronize_session=False)
            self._session.commit()
            return count
        except Exception as e:
            self._session.rollback()
            log.error(f"Error cleaning up API tokens: {str(e)}")
            raise
