"""Service for handling passkey (WebAuthn) ceremonies.

Each ceremony stores a single-use challenge when it begins and consumes it
when it completes. A challenge is only found when the id, the ceremony type
and the expiry all match; every other case reports the same "challenge not
found" so a caller cannot probe which ceremonies exist.
"""

import json
import logging
import uuid
from datetime import timedelta

from webauthn import (
    generate_authentication_options,
    generate_registration_options,
    options_to_json,
    verify_authentication_response,
    verify_registration_response,
)
from webauthn.helpers import (
    base64url_to_bytes,
    bytes_to_base64url,
    parse_authentication_credential_json,
    parse_registration_credential_json,
)
from webauthn.helpers.structs import (
    AttestationConveyancePreference,
    AuthenticatorSelectionCriteria,
    AuthenticatorTransport,
    PublicKeyCredentialDescriptor,
    ResidentKeyRequirement,
    UserVerificationRequirement,
)

from gigauth.errors import (
    ChallengeNotFoundError,
    CredentialNotFoundError,
    NoPasskeysError,
    PasskeyVerificationError,
    UserExistsError,
)
from gigauth.models.webauthn import ChallengeOperation, WebAuthnChallenge, WebAuthnCredential
from gigauth.utils.clock import utcnow

log = logging.getLogger(__name__)

CHALLENGE_TTL = timedelta(minutes=5)


def _operation_value(operation):
    if isinstance(operation, ChallengeOperation):
        return operation.value
    return str(operation)


def _descriptor(credential):
    known = {t.value for t in AuthenticatorTransport}
    transports = [AuthenticatorTransport(t) for t in credential.get_transports() if t in known]
    return PublicKeyCredentialDescriptor(
        id=base64url_to_bytes(credential.credential_id),
        transports=transports or None,
    )


class WebAuthnService:
    """Drives passkey registration and authentication ceremonies."""

    def __init__(self, webauthn_repository, user_service, rp_id=None, rp_name=None, origins=None):
        self.repository = webauthn_repository
        self.user_service = user_service
        self.rp_id = rp_id or "localhost"
        self.rp_name = rp_name or "Gig Listings"
        self.origins = list(origins or [])

    # Challenge storage

    def _store(self, session_data, operation, user_id=None, email=None):
        challenge = WebAuthnChallenge(
            id=str(uuid.uuid4()),
            user_id=user_id,
            pending_email=email,
            challenge=base64url_to_bytes(session_data["challenge"]),
            session_data=json.dumps(session_data),
            operation=_operation_value(operation),
            expires_at=utcnow() + CHALLENGE_TTL,
        )
        self.repository.save_challenge(challenge)
        return challenge.id

    def _load(self, challenge_id, operation):
        if not challenge_id:
            raise ChallengeNotFoundError()
        challenge = self.repository.get_live_challenge(challenge_id, _operation_value(operation), utcnow())
        if challenge is None:
            raise ChallengeNotFoundError()
        return challenge

    def store_challenge(self, user_id, session_data, operation):
        """Persist a challenge for a known user. Returns the challenge id."""
        return self._store(session_data, operation, user_id=user_id)

    def get_challenge(self, challenge_id, operation):
        """Look up a live challenge.

        Returns:
            tuple: (session_data, user_id)
        """
        challenge = self._load(challenge_id, operation)
        return json.loads(challenge.session_data), challenge.user_id

    def store_challenge_with_email(self, email, session_data, operation):
        """Persist a challenge for a sign-up that has no user record yet."""
        return self._store(session_data, operation, email=email)

    def get_challenge_with_email(self, challenge_id, operation):
        """Look up a live sign-up challenge.

        Returns:
            tuple: (session_data, email)
        """
        challenge = self._load(challenge_id, operation)
        if not challenge.pending_email:
            raise ChallengeNotFoundError()
        return json.loads(challenge.session_data), challenge.pending_email

    def delete_challenge(self, challenge_id):
        self.repository.delete_challenge(challenge_id)

    def cleanup_expired_challenges(self):
        """Remove expired challenges. Returns the number removed."""
        count = self.repository.delete_challenges_expired_before(utcnow())
        if count:
            log.info(f"Removed {count} expired WebAuthn challenges")
        return count

    def _consume(self, challenge_id, operation, by_email=False, expected_owner=None):
        if by_email:
            session_data, owner = self.get_challenge_with_email(challenge_id, operation)
        else:
            session_data, owner = self.get_challenge(challenge_id, operation)
        # Another user's challenge is left untouched
        if expected_owner is not None and owner != expected_owner:
            raise ChallengeNotFoundError()
        # Single use, whatever the outcome of verification
        self.delete_challenge(challenge_id)
        return session_data, owner

    # Registration

    def _registration_options(self, user_id, user_name, display_name, exclude=None):
        return generate_registration_options(
            rp_id=self.rp_id,
            rp_name=self.rp_name,
            user_id=user_id,
            user_name=user_name,
            user_display_name=display_name,
            attestation=AttestationConveyancePreference.NONE,
            authenticator_selection=AuthenticatorSelectionCriteria(
                resident_key=ResidentKeyRequirement.PREFERRED,
                user_verification=UserVerificationRequirement.PREFERRED,
            ),
            exclude_credentials=exclude or [],
        )

    def begin_registration(self, user):
        """Start adding a passkey to an existing account.

        Returns:
            tuple: (options_json, challenge_id)
        """
        existing = self.repository.get_credentials_by_user_id(user.id)
        options = self._registration_options(
            user.webauthn_user_handle,
            user.webauthn_name,
            user.webauthn_display_name,
            exclude=[_descriptor(cred) for cred in existing],
        )
        session_data = {
            "challenge": bytes_to_base64url(options.challenge),
            "user_verification": UserVerificationRequirement.PREFERRED.value,
        }
        challenge_id = self.store_challenge(user.id, session_data, ChallengeOperation.REGISTRATION)
        return options_to_json(options), challenge_id

    def _verify_registration(self, session_data, credential):
        try:
            parsed = parse_registration_credential_json(credential)
            verification = verify_registration_response(
                credential=parsed,
                expected_challenge=base64url_to_bytes(session_data["challenge"]),
                expected_rp_id=self.rp_id,
                expected_origin=self.origins,
            )
        except Exception as e:
            log.warning(f"Passkey registration rejected: {e}")
            raise PasskeyVerificationError(internal=e) from e

        credential_id = bytes_to_base64url(verification.credential_id)
        if self.repository.get_credential_by_credential_id(credential_id) is not None:
            raise PasskeyVerificationError("credential already registered")

        transports = [t.value for t in (parsed.response.transports or [])]
        return WebAuthnCredential(
            credential_id=credential_id,
            public_key=verification.credential_public_key,
            sign_count=verification.sign_count,
            aaguid=verification.aaguid,
            attestation_type=getattr(verification.fmt, "value", None),
            transports=json.dumps(transports) if transports else None,
            backup_eligible=getattr(verification.credential_device_type, "value", "") == "multi_device",
            backup_state=bool(verification.credential_backed_up),
        )

    def finish_registration(self, user, challenge_id, credential, display_name=None):
        """Complete a registration ceremony and persist the new credential."""
        session_data, _ = self._consume(
            challenge_id, ChallengeOperation.REGISTRATION, expected_owner=user.id
        )

        record = self._verify_registration(session_data, credential)
        record.user_id = user.id
        record.display_name = display_name or f"Passkey created on {utcnow().strftime('%Y-%m-%d')}"
        self.repository.save_credential(record)
        log.info(f"Registered passkey {record.id} for user {user.id}")
        return record

    def begin_signup_registration(self, email):
        """Start a passkey-first sign-up for an email with no account yet.

        Returns:
            tuple: (options_json, challenge_id)
        """
        email = (email or "").strip().lower()
        if self.user_service.get_user_by_email(email) is not None:
            raise UserExistsError(internal=f"duplicate email: {email}")

        # No user id exists yet; the library picks a random user handle
        options = self._registration_options(None, email, email)
        session_data = {
            "challenge": bytes_to_base64url(options.challenge),
            "user_verification": UserVerificationRequirement.PREFERRED.value,
        }
        challenge_id = self.store_challenge_with_email(
            email, session_data, ChallengeOperation.SIGNUP_REGISTRATION
        )
        return options_to_json(options), challenge_id

    def finish_signup_registration(self, challenge_id, credential, display_name=None):
        """Create the account and its first passkey together.

        Returns:
            tuple: (user, credential_record)
        """
        session_data, email = self._consume(
            challenge_id, ChallengeOperation.SIGNUP_REGISTRATION, by_email=True
        )
        record = self._verify_registration(session_data, credential)
        record.display_name = display_name or "Primary passkey"
        user = self.user_service.create_user_without_password(email, record)
        log.info(f"Created user {user.id} via passkey sign-up")
        return user, record

    # Authentication

    def begin_login(self, user):
        """Start a login for a known user.

        Returns:
            tuple: (options_json, challenge_id)
        """
        credentials = self.repository.get_credentials_by_user_id(user.id)
        if not credentials:
            raise NoPasskeysError()

        options = generate_authentication_options(
            rp_id=self.rp_id,
            allow_credentials=[_descriptor(cred) for cred in credentials],
            user_verification=UserVerificationRequirement.PREFERRED,
        )
        session_data = {
            "challenge": bytes_to_base64url(options.challenge),
            "user_verification": UserVerificationRequirement.PREFERRED.value,
            "allowed_credential_ids": [cred.credential_id for cred in credentials],
        }
        challenge_id = self.store_challenge(user.id, session_data, ChallengeOperation.AUTHENTICATION)
        return options_to_json(options), challenge_id

    def begin_discoverable_login(self):
        """Start a usernameless login; the credential identifies the user.

        Returns:
            tuple: (options_json, challenge_id)
        """
        options = generate_authentication_options(
            rp_id=self.rp_id,
            user_verification=UserVerificationRequirement.PREFERRED,
        )
        session_data = {
            "challenge": bytes_to_base64url(options.challenge),
            "user_verification": UserVerificationRequirement.PREFERRED.value,
        }
        challenge_id = self.store_challenge(None, session_data, ChallengeOperation.AUTHENTICATION)
        return options_to_json(options), challenge_id

    def finish_login(self, challenge_id, credential):
        """Complete a login ceremony.

        Returns:
            tuple: (user, credential_record)
        """
        session_data, expected_user_id = self._consume(challenge_id, ChallengeOperation.AUTHENTICATION)

        try:
            parsed = parse_authentication_credential_json(credential)
        except Exception as e:
            raise PasskeyVerificationError(internal=e) from e

        credential_id = bytes_to_base64url(parsed.raw_id)
        record = self.repository.get_credential_by_credential_id(credential_id)
        if record is None:
            raise CredentialNotFoundError()
        if expected_user_id is not None and record.user_id != expected_user_id:
            raise CredentialNotFoundError()
        allowed = session_data.get("allowed_credential_ids")
        if allowed and credential_id not in allowed:
            raise CredentialNotFoundError()

        try:
            verification = verify_authentication_response(
                credential=parsed,
                expected_challenge=base64url_to_bytes(session_data["challenge"]),
                expected_rp_id=self.rp_id,
                expected_origin=self.origins,
                credential_public_key=record.public_key,
                # Counter regressions are flagged below rather than rejected
                credential_current_sign_count=0,
            )
        except Exception as e:
            log.warning(f"Passkey login rejected for credential {record.id}: {e}")
            raise PasskeyVerificationError(internal=e) from e

        user = self.user_service.get_user_by_id(record.user_id)

        stored = record.sign_count or 0
        if (stored or verification.new_sign_count) and verification.new_sign_count <= stored:
            log.warning(f"Sign count did not increase for credential {record.id}; possible cloned authenticator")
            record.clone_warning = True
        record.sign_count = verification.new_sign_count
        record.backup_state = bool(verification.credential_backed_up)
        record.last_used_at = utcnow()
        self.repository.save_credential(record)
        return user, record

    # Credential management

    def list_credentials(self, user_id):
        return self.repository.get_credentials_by_user_id(user_id)

    def delete_credential(self, user_id, credential_pk):
        if self.repository.delete_credential_for_user(user_id, credential_pk) == 0:
            raise CredentialNotFoundError()
        log.info(f"Deleted passkey {credential_pk} for user {user_id}")

    def rename_credential(self, user_id, credential_pk, display_name):
        if self.repository.rename_credential_for_user(user_id, credential_pk, display_name) == 0:
            raise CredentialNotFoundError()
