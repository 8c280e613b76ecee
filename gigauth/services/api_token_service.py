"""Long-lived opaque API tokens for programmatic admin access."""

import hashlib
import logging
import re
import secrets
from datetime import timedelta

from gigauth.errors import (
    ApiTokenExpiredError,
    ApiTokenInvalidError,
    ApiTokenNotFoundError,
    ApiTokenRevokedError,
    NotAdminError,
    UserInactiveError,
)
from gigauth.models.api_token import APIToken
from gigauth.utils.clock import utcnow

logger = logging.getLogger(__name__)

# "gig api key"; lets operators recognise the format in logs and URLs
TOKEN_PREFIX = "gak_"
# 32 random bytes, rendered as 64 hex characters
TOKEN_BYTES = 32
TOKEN_LENGTH = len(TOKEN_PREFIX) + TOKEN_BYTES * 2
DEFAULT_TOKEN_EXPIRATION_DAYS = 90
# Expired and revoked tokens are kept this long for auditing
CLEANUP_RETENTION = timedelta(days=30)
SCOPE_ADMIN = "admin"

_TOKEN_RE = re.compile(r"^%s[0-9a-f]{%d}$" % (re.escape(TOKEN_PREFIX), TOKEN_BYTES * 2))


def generate_token():
    """Create a new raw token string."""
    return TOKEN_PREFIX + secrets.token_hex(TOKEN_BYTES)


def hash_token(raw_token):
    """SHA-256 hex digest of a raw token; the only form that is stored."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def looks_like_api_token(value):
    return bool(value) and value.startswith(TOKEN_PREFIX)


class ApiTokenService:
    """Create, validate, list and revoke API tokens."""

    def __init__(self, token_repository, background=None):
        """
        Args:
            token_repository: storage for token records
            background: callable ``background(fn, *args)`` used for writes that
                are not part of the access decision. Runs inline when omitted.
        """
        self.token_repository = token_repository
        self._background = background

    def create(self, user_id, description=None, ttl_days=None):
        """Create a token for ``user_id``.

        Returns:
            tuple: (raw_token, record). The raw token is not retrievable later.
        """
        if not ttl_days or ttl_days <= 0:
            ttl_days = DEFAULT_TOKEN_EXPIRATION_DAYS

        raw_token = generate_token()
        record = APIToken(
            user_id=user_id,
            token_hash=hash_token(raw_token),
            description=description,
            scope=SCOPE_ADMIN,
            created_at=utcnow(),
            expires_at=utcnow() + timedelta(days=ttl_days),
        )
        self.token_repository.save(record)
        logger.info(f"Created API token {record.id} for user {user_id}, expires in {ttl_days} days")
        return raw_token, record

    def validate(self, raw_token):
        """Resolve a raw token to its owner.

        Returns:
            tuple: (user, record)

        Raises:
            ApiTokenInvalidError: malformed or unknown token
            ApiTokenRevokedError, ApiTokenExpiredError: token no longer usable
            UserInactiveError, NotAdminError: token fine, owner lost access
        """
        if not raw_token or not _TOKEN_RE.match(raw_token):
            raise ApiTokenInvalidError(internal="malformed token")

        record = self.token_repository.get_by_hash(hash_token(raw_token))
        if record is None:
            raise ApiTokenInvalidError()

        if record.is_revoked:
            raise ApiTokenRevokedError()
        if record.is_expired:
            raise ApiTokenExpiredError()

        user = record.user
        if user is None or not user.is_active:
            raise UserInactiveError()
        if record.scope == SCOPE_ADMIN and not user.is_admin:
            raise NotAdminError()

        self._record_use(record.id)
        return user, record

    def _record_use(self, token_id):
        used_at = utcnow()
        if self._background is None:
            self.token_repository.touch_last_used(token_id, used_at)
        else:
            self._background(self.token_repository.touch_last_used, token_id, used_at)

    def list(self, user_id):
        """Non-revoked tokens for a user, newest first."""
        return self.token_repository.list_active_for_user(user_id)

    def get(self, user_id, token_id):
        """Get one of the user's tokens; other users' tokens are "not found"."""
        record = self.token_repository.get_for_user(user_id, token_id)
        if record is None:
            raise ApiTokenNotFoundError()
        return record

    def revoke(self, user_id, token_id):
        """Revoke one of the user's tokens."""
        count = self.token_repository.revoke_for_user(user_id, token_id, utcnow())
        if count == 0:
            raise ApiTokenNotFoundError("token not found or already revoked")
        logger.info(f"Revoked API token {token_id} for user {user_id}")

    def cleanup_expired(self):
        """Delete tokens expired or revoked more than the retention window ago.

        Returns:
            int: number of rows removed
        """
        now = utcnow()
        count = self.token_repository.delete_expired_before(now, now - CLEANUP_RETENTION)
        if count:
            logger.info(f"Removed {count} expired API tokens")
        return count
