"""Database models for the application."""

# Import models in the correct order to avoid circular dependencies
from gigauth.models.user import User, OAuthAccount, UserPreferences
from gigauth.models.api_token import APIToken
from gigauth.models.webauthn import WebAuthnCredential, WebAuthnChallenge, ChallengeOperation
