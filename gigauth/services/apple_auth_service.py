"""Sign in with Apple: identity token verification and account resolution."""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt

from gigauth.errors import AppleAuthError
from gigauth.models.user import OAuthAccount, User
from gigauth.services.apple_keys import AppleKeyCache, AppleKeyFetchError, AppleKeyNotFoundError

log = logging.getLogger(__name__)

APPLE_ISSUER = "https://appleid.apple.com"
APPLE_PROVIDER = "apple"


def _is_truthy_flag(value):
    """Apple sends ``email_verified`` as a boolean or as the string "true"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return False


@dataclass
class AppleIdentityClaims:
    """Verified claims from an Apple identity token."""

    subject: str
    email: Optional[str] = None
    email_verified: bool = False
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None

    @classmethod
    def from_payload(cls, payload):
        return cls(
            subject=payload["sub"],
            email=(payload.get("email") or None),
            email_verified=_is_truthy_flag(payload.get("email_verified")),
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )


class AppleAuthService:
    """Verifies Apple identity tokens and maps them onto local users."""

    def __init__(self, user_repository, session_token_service, bundle_id, key_cache=None):
        self.user_repository = user_repository
        self.session_token_service = session_token_service
        self.bundle_id = bundle_id
        self.key_cache = key_cache or AppleKeyCache()

    def validate_identity_token(self, identity_token):
        """Verify signature, issuer, audience and expiry of an identity token.

        Every failure raises the same ``AppleAuthError``; the reason is only
        logged so the endpoint cannot be used to learn why a token failed.
        """
        try:
            header = jwt.get_unverified_header(identity_token)
            kid = header.get("kid")
            if not kid:
                raise jwt.InvalidTokenError("missing kid in token header")

            public_key = self.key_cache.get_key(kid)
            payload = jwt.decode(
                identity_token,
                public_key,
                algorithms=["RS256"],
                audience=self.bundle_id,
                issuer=APPLE_ISSUER,
                options={"require": ["exp", "iat", "sub"]},
            )
            return AppleIdentityClaims.from_payload(payload)
        except (jwt.InvalidTokenError, AppleKeyNotFoundError, AppleKeyFetchError) as e:
            log.warning(f"Rejected Apple identity token: {e}")
            raise AppleAuthError(internal=e) from e

    def generate_token(self, user):
        """Issue a session token for a user signed in with Apple."""
        return self.session_token_service.issue(user)

    def find_or_create_apple_user(self, claims, first_name=None, last_name=None):
        """Resolve an Apple identity to a local user.

        1. An account already linked to this Apple subject.
        2. An existing user with the same, Apple-verified, email; the subject
           is linked to that user.
        3. A new user with the identity link and default preferences.
        """
        account = self.user_repository.get_oauth_account(APPLE_PROVIDER, claims.subject)
        if account is not None:
            return account.user

        email = claims.email.strip().lower() if claims.email else None

        if email and claims.email_verified:
            existing = self.user_repository.get_by_email(email)
            if existing is not None:
                self.user_repository.add_oauth_account(OAuthAccount(
                    user_id=existing.id,
                    provider=APPLE_PROVIDER,
                    provider_user_id=claims.subject,
                    provider_email=email,
                ))
                log.info(f"Linked Apple identity to existing user {existing.id}")
                return existing

        # An unverified email already held by another account is not copied
        # onto the new user; the email column is unique.
        if email and self.user_repository.get_by_email(email) is not None:
            user_email = None
        else:
            user_email = email

        user = User(
            email=user_email,
            first_name=first_name or None,
            last_name=last_name or None,
            is_active=True,
            email_verified=bool(user_email and claims.email_verified),
        )
        account = OAuthAccount(
            provider=APPLE_PROVIDER,
            provider_user_id=claims.subject,
            provider_email=email,
        )
        user = self.user_repository.create_with_defaults(user, account)
        log.info(f"Created user {user.id} from Apple sign-in")
        return user
