"""Signed bearer session tokens.

Tokens are HS256 JWTs. They cannot be revoked individually, so verification
always re-reads the user from storage: a deactivated user or a changed admin
flag takes effect on the next request even though the token stays valid.
"""

import logging
import time
from datetime import timedelta

import jwt

from gigauth.errors import TokenExpiredError, TokenInvalidError

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "gigauth-backend"
TOKEN_AUDIENCE = "gigauth-users"
SIGNING_ALGORITHM = "HS256"
DEFAULT_REFRESH_GRACE = timedelta(days=7)


class SessionTokenService:
    """Issues and verifies session tokens."""

    def __init__(self, user_service, secret_key, expiry_hours=24, refresh_grace=DEFAULT_REFRESH_GRACE,
                 clock=None):
        if not secret_key:
            raise ValueError("secret_key is required")
        self.user_service = user_service
        self._secret_key = secret_key
        self.ttl = timedelta(hours=expiry_hours)
        self.refresh_grace = refresh_grace
        self._clock = clock or time.time

    def _now(self):
        return int(self._clock())

    def issue(self, user):
        """Create a signed token for ``user``."""
        now = self._now()
        claims = {
            "user_id": user.id,
            "email": user.email,
            "iat": now,
            "exp": now + int(self.ttl.total_seconds()),
            "iss": TOKEN_ISSUER,
            "aud": TOKEN_AUDIENCE,
        }
        return jwt.encode(claims, self._secret_key, algorithm=SIGNING_ALGORITHM)

    def _decode(self, token):
        """Check signature, issuer and audience; expiry is checked by the caller."""
        if not token or not isinstance(token, str):
            raise TokenInvalidError(internal="empty token")
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[SIGNING_ALGORITHM],
                audience=TOKEN_AUDIENCE,
                issuer=TOKEN_ISSUER,
                options={
                    "verify_exp": False,
                    # aud must be the exact string, not a list containing it
                    "strict_aud": True,
                    # iat is only a timestamp here; the injected clock owns time checks
                    "verify_iat": False,
                    "require": ["iss", "aud"],
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(internal=e) from e

    def _claims_user_id(self, claims):
        user_id = claims.get("user_id")
        if isinstance(user_id, bool) or not isinstance(user_id, (int, float)):
            raise TokenInvalidError(internal="missing user_id claim")
        return int(user_id)

    def _expiry(self, claims):
        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenInvalidError(internal="missing expiration claim")
        return exp

    def verify(self, token):
        """Verify a token and return the current user it names.

        Raises:
            TokenInvalidError: malformed, bad signature, wrong issuer/audience
            TokenExpiredError: ``now >= exp``
        """
        claims = self._decode(token)
        if self._now() >= self._expiry(claims):
            raise TokenExpiredError(internal="token expired")
        return self.user_service.get_user_by_id(self._claims_user_id(claims))

    def verify_lenient(self, token, grace):
        """Like :meth:`verify`, but accept tokens expired for at most ``grace``.

        Only used to let a client trade a recently expired token for a new one.
        """
        if isinstance(grace, timedelta):
            grace = grace.total_seconds()

        claims = self._decode(token)
        exp = self._expiry(claims)
        overdue = self._now() - exp
        if overdue > grace:
            raise TokenExpiredError("expired beyond grace period",
                                    internal=f"token expired {overdue}s ago")
        if overdue >= 0:
            logger.info(f"Accepting token expired {overdue}s ago within grace period")
        return self.user_service.get_user_by_id(self._claims_user_id(claims))

    def refresh(self, token):
        """Exchange a valid token for a fresh one."""
        return self.issue(self.verify(token))

    def refresh_lenient(self, token, grace=None):
        """Exchange a valid or recently expired token for a fresh one.

        ``grace`` defaults to the service's ``refresh_grace``.
        """
        if grace is None:
            grace = self.refresh_grace
        return self.issue(self.verify_lenient(token, grace))
