import os
from datetime import timedelta

JWT_SECRET_PLACEHOLDER = 'your-super-secret-jwt-key-32-chars-minimum'


def _split_origins(value):
    """Parse a comma-separated origin list, dropping blanks."""
    if not value:
        return []
    return [origin.strip() for origin in value.split(',') if origin.strip()]


class Config:
    """Base configuration for the application."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-please-change-in-production'
    DEBUG = False
    TESTING = False

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///gigauth.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Front-end the passkey ceremonies are served from
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')

    # Session token settings
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', JWT_SECRET_PLACEHOLDER)
    JWT_EXPIRY_HOURS = int(os.environ.get('JWT_EXPIRY_HOURS', 24))
    JWT_REFRESH_GRACE_PERIOD = timedelta(days=int(os.environ.get('JWT_REFRESH_GRACE_DAYS', 7)))

    # WebAuthn / passkey settings
    WEBAUTHN_RP_ID = os.environ.get('WEBAUTHN_RP_ID', 'localhost')
    WEBAUTHN_RP_NAME = os.environ.get('WEBAUTHN_RP_NAME', 'Gig Listings')
    WEBAUTHN_RP_ORIGINS = _split_origins(os.environ.get('WEBAUTHN_RP_ORIGINS'))

    # Sign in with Apple settings
    APPLE_BUNDLE_ID = os.environ.get('APPLE_BUNDLE_ID', 'com.giglistings.ios')
    APPLE_KEYS_URL = os.environ.get('APPLE_KEYS_URL', 'https://appleid.apple.com/auth/keys')
    APPLE_KEYS_TTL_SECONDS = int(os.environ.get('APPLE_KEYS_TTL_SECONDS', 86400))

    # Password breach corpus
    PWNED_PASSWORDS_URL = os.environ.get('PWNED_PASSWORDS_URL', 'https://api.pwnedpasswords.com')

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS = float(os.environ.get('HTTP_TIMEOUT_SECONDS', 5))

    # Expiry sweeps
    CLEANUP_INTERVAL_HOURS = int(os.environ.get('CLEANUP_INTERVAL_HOURS', 1))
    SCHEDULER_API_ENABLED = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.environ.get('LOG_FORMAT', 'json')


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True

    # Use SQLite for development
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or 'sqlite:///dev.db'
    LOG_FORMAT = 'standard'


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True

    # Use in-memory SQLite for testing
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'testing-jwt-secret-key-with-32-plus-bytes'
    LOG_FORMAT = 'standard'


class ProductionConfig(Config):
    """Production configuration."""

    # Ensure proper secret key is set
    SECRET_KEY = os.environ.get('SECRET_KEY')


# Configuration dictionary
config_dict = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}

def get_config(config_name=None):
    """Get configuration class based on environment."""
    if not config_name:
        config_name = os.environ.get('FLASK_ENV', 'default')
    return config_dict.get(config_name, config_dict['default'])


def validate_config(app):
    """Refuse to run outside development/testing with placeholder secrets."""
    if app.config.get('TESTING') or app.config.get('DEBUG'):
        return
    if app.config.get('JWT_SECRET_KEY') in (None, '', JWT_SECRET_PLACEHOLDER):
        raise RuntimeError(
            "JWT_SECRET_KEY is using a placeholder default; set a unique secret for production"
        )


def webauthn_origins(config):
    """Allowed WebAuthn origins, falling back to the front-end URL."""
    origins = config.get('WEBAUTHN_RP_ORIGINS') or []
    if not origins:
        origins = [config.get('FRONTEND_URL', 'http://localhost:3000')]
    return origins
