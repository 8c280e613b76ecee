"""Application error types.

Every rejection raised by a verifier carries a stable ``code`` so callers can
branch on it and the HTTP layer can render it without parsing messages.
"""

import logging
from flask import jsonify

log = logging.getLogger(__name__)

# Auth error codes
CODE_INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
CODE_USER_NOT_FOUND = "USER_NOT_FOUND"
CODE_USER_INACTIVE = "USER_INACTIVE"
CODE_USER_EXISTS = "USER_EXISTS"
CODE_TOKEN_EXPIRED = "TOKEN_EXPIRED"
CODE_TOKEN_INVALID = "TOKEN_INVALID"
CODE_TOKEN_MISSING = "TOKEN_MISSING"
CODE_API_TOKEN_INVALID = "API_TOKEN_INVALID"
CODE_API_TOKEN_REVOKED = "API_TOKEN_REVOKED"
CODE_API_TOKEN_EXPIRED = "API_TOKEN_EXPIRED"
CODE_API_TOKEN_NOT_FOUND = "API_TOKEN_NOT_FOUND"
CODE_NOT_ADMIN = "NOT_ADMIN"
CODE_CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"
CODE_NO_PASSKEYS = "NO_PASSKEYS"
CODE_CREDENTIAL_NOT_FOUND = "CREDENTIAL_NOT_FOUND"
CODE_PASSKEY_VERIFICATION_FAILED = "PASSKEY_VERIFICATION_FAILED"
CODE_APPLE_TOKEN_INVALID = "APPLE_TOKEN_INVALID"
CODE_SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
CODE_VALIDATION_FAILED = "VALIDATION_FAILED"
CODE_UNKNOWN = "UNKNOWN"


class AppError(Exception):
    """Base exception class for application-specific errors."""

    code = CODE_UNKNOWN

    def __init__(self, message=None, details=None, status_code=None):
        super().__init__(message)
        self.message = message or "An unexpected error occurred"
        self.details = details
        self.status_code = status_code or 500


class ValidationError(AppError):
    """Exception for data validation errors."""

    code = CODE_VALIDATION_FAILED

    def __init__(self, message=None, details=None):
        super().__init__(
            message=message or "Validation error",
            details=details,
            status_code=400
        )


class AuthError(AppError):
    """Authentication failure with a stable error code.

    ``internal`` holds the underlying cause for logging; it is never part of
    the user-facing message.
    """

    code = CODE_UNKNOWN
    default_message = "Authentication error"
    default_status = 401

    def __init__(self, message=None, internal=None, details=None, status_code=None):
        super().__init__(
            message=message or self.default_message,
            details=details,
            status_code=status_code or self.default_status
        )
        self.internal = internal

    def __str__(self):
        if self.internal is not None:
            return f"{self.code}: {self.message} (internal: {self.internal})"
        return f"{self.code}: {self.message}"


# Session tokens

class TokenInvalidError(AuthError):
    code = CODE_TOKEN_INVALID
    default_message = "Invalid authentication token"


class TokenExpiredError(AuthError):
    code = CODE_TOKEN_EXPIRED
    default_message = "Your session has expired. Please log in again."


class TokenMissingError(AuthError):
    code = CODE_TOKEN_MISSING
    default_message = "Authentication required"


# Identity collaborator

class InvalidCredentialsError(AuthError):
    code = CODE_INVALID_CREDENTIALS
    default_message = "Invalid email or password"


class UserNotFoundError(AuthError):
    code = CODE_USER_NOT_FOUND
    default_message = "User not found"


class UserInactiveError(AuthError):
    code = CODE_USER_INACTIVE
    default_message = "User account is not active"
    default_status = 403


class UserExistsError(AuthError):
    code = CODE_USER_EXISTS
    default_message = "An account with this email already exists"
    default_status = 409


# Opaque API tokens

class ApiTokenInvalidError(AuthError):
    code = CODE_API_TOKEN_INVALID
    default_message = "invalid token"


class ApiTokenRevokedError(AuthError):
    code = CODE_API_TOKEN_REVOKED
    default_message = "token has been revoked"


class ApiTokenExpiredError(AuthError):
    code = CODE_API_TOKEN_EXPIRED
    default_message = "token has expired"


class ApiTokenNotFoundError(AuthError):
    code = CODE_API_TOKEN_NOT_FOUND
    default_message = "token not found"
    default_status = 404


class NotAdminError(AuthError):
    code = CODE_NOT_ADMIN
    default_message = "user is not an admin"
    default_status = 403


# WebAuthn ceremonies

class ChallengeNotFoundError(AuthError):
    code = CODE_CHALLENGE_NOT_FOUND
    default_message = "challenge not found"


class NoPasskeysError(AuthError):
    code = CODE_NO_PASSKEYS
    default_message = "user has no registered passkeys"
    default_status = 400


class CredentialNotFoundError(AuthError):
    code = CODE_CREDENTIAL_NOT_FOUND
    default_message = "credential not found"
    default_status = 404


class PasskeyVerificationError(AuthError):
    code = CODE_PASSKEY_VERIFICATION_FAILED
    default_message = "passkey verification failed"


# Sign in with Apple

class AppleAuthError(AuthError):
    code = CODE_APPLE_TOKEN_INVALID
    default_message = "invalid Apple identity token"


# Dependencies

class BreachCheckError(AppError):
    """The breach corpus could not be queried."""

    code = CODE_SERVICE_UNAVAILABLE

    def __init__(self, message=None, details=None):
        super().__init__(
            message=message or "Could not query breach database",
            details=details,
            status_code=503
        )


def to_external_code(code):
    """Map internal codes to ones that are safe to expose.

    A missing user must look like a wrong password so that login responses do
    not reveal which emails are registered.
    """
    if code == CODE_USER_NOT_FOUND:
        return CODE_INVALID_CREDENTIALS
    return code


def register_error_handlers(app):
    """Register application error handlers."""

    @app.errorhandler(AppError)
    def handle_app_error(e):
        """Render application errors as JSON."""
        code = to_external_code(e.code)
        if code != e.code:
            message = InvalidCredentialsError.default_message
        else:
            message = e.message
        if e.status_code >= 500:
            log.error(f"{e.code}: {e}")
        else:
            log.info(f"Request rejected with {e.code}")
        return jsonify({
            'success': False,
            'message': message,
            'error_code': code,
        }), e.status_code
