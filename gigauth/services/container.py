"""Service container for dependency injection."""

import logging
from typing import Dict, Any
from flask import current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'gigauth_services'


class ServiceContainer:
    """Container for application services.

    Services are built lazily from the owning app's config and kept for the
    life of the app, so caches such as the Apple key set are shared between
    requests.
    """

    def __init__(self, config=None):
        self._services: Dict[str, Any] = {}
        self._config = config

    @property
    def config(self):
        if self._config is not None:
            return self._config
        return current_app.config

    def register(self, name: str, service: Any) -> None:
        """Register a service in the container, replacing any existing one.

        Args:
            name: Name of the service
            service: The service instance
        """
        self._services[name] = service

    def get(self, name: str) -> Any:
        """Get a service from the container by name.

        Args:
            name: Name of the service

        Returns:
            The service instance

        Raises:
            KeyError: no service of that name is known
        """
        if name in self._services:
            return self._services[name]

        init_method = getattr(self, f"_init_{name}", None)
        if init_method is None:
            raise KeyError(f"Unknown service: {name}")
        try:
            service = init_method()
        except Exception as e:
            logger.error(f"Error creating service {name}: {str(e)}")
            raise
        self._services[name] = service
        return service

    def _init_user_repository(self):
        from gigauth.models.user_repository import SqlAlchemyUserRepository
        from gigauth.extensions import db
        return SqlAlchemyUserRepository(db)

    def _init_api_token_repository(self):
        from gigauth.models.api_token_repository import SqlAlchemyApiTokenRepository
        from gigauth.extensions import db
        return SqlAlchemyApiTokenRepository(db)

    def _init_webauthn_repository(self):
        from gigauth.models.webauthn_repository import SqlAlchemyWebAuthnRepository
        from gigauth.extensions import db
        return SqlAlchemyWebAuthnRepository(db)

    def _init_password_validator(self):
        """Initialize the password validator."""
        from gigauth.services.password_validator import PasswordValidator
        return PasswordValidator(
            base_url=self.config['PWNED_PASSWORDS_URL'],
            timeout=self.config['HTTP_TIMEOUT_SECONDS'],
        )

    def _init_user_service(self):
        """Initialize the user service."""
        from gigauth.services.user_service import UserService
        return UserService(self.get('user_repository'), self.get('password_validator'))

    def _init_session_token_service(self):
        """Initialize the session token service."""
        from gigauth.services.session_token_service import SessionTokenService
        return SessionTokenService(
            self.get('user_service'),
            self.config['JWT_SECRET_KEY'],
            expiry_hours=self.config['JWT_EXPIRY_HOURS'],
            refresh_grace=self.config['JWT_REFRESH_GRACE_PERIOD'],
        )

    def _init_api_token_service(self):
        """Initialize the API token service."""
        from gigauth.services.api_token_service import ApiTokenService
        from gigauth.tasks.executor import run_in_background
        background = None if self.config.get('TESTING') else run_in_background
        return ApiTokenService(self.get('api_token_repository'), background=background)

    def _init_webauthn_service(self):
        """Initialize the WebAuthn service."""
        from gigauth.config import webauthn_origins
        from gigauth.services.webauthn_service import WebAuthnService
        return WebAuthnService(
            self.get('webauthn_repository'),
            self.get('user_service'),
            rp_id=self.config['WEBAUTHN_RP_ID'],
            rp_name=self.config['WEBAUTHN_RP_NAME'],
            origins=webauthn_origins(self.config),
        )

    def _init_apple_key_cache(self):
        from gigauth.services.apple_keys import AppleKeyCache
        return AppleKeyCache(
            keys_url=self.config['APPLE_KEYS_URL'],
            timeout=self.config['HTTP_TIMEOUT_SECONDS'],
            ttl_seconds=self.config['APPLE_KEYS_TTL_SECONDS'],
        )

    def _init_apple_auth_service(self):
        """Initialize the Sign in with Apple service."""
        from gigauth.services.apple_auth_service import AppleAuthService
        return AppleAuthService(
            self.get('user_repository'),
            self.get('session_token_service'),
            self.config['APPLE_BUNDLE_ID'],
            key_cache=self.get('apple_key_cache'),
        )


def init_container(app):
    """Attach a fresh service container to ``app``."""
    app.extensions[EXTENSION_KEY] = ServiceContainer(app.config)
    return app.extensions[EXTENSION_KEY]


def container():
    """Get the service container of the current app.

    Returns:
        ServiceContainer: The service container instance
    """
    services = current_app.extensions.get(EXTENSION_KEY)
    if services is None:
        services = init_container(current_app._get_current_object())
    return services
