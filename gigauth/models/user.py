from werkzeug.security import generate_password_hash, check_password_hash
from gigauth.extensions import db
from gigauth.utils.clock import utcnow


class User(db.Model):
    """User account the verifiers resolve credentials to."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), index=True, unique=True, nullable=True)
    username = db.Column(db.String(64), index=True, unique=True, nullable=True)
    password_hash = db.Column(db.String(256), nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    email_verified = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    oauth_accounts = db.relationship('OAuthAccount', back_populates='user', lazy=True,
                                     cascade='all, delete-orphan')
    preferences = db.relationship('UserPreferences', back_populates='user', uselist=False,
                                  cascade='all, delete-orphan')
    passkey_credentials = db.relationship('WebAuthnCredential', back_populates='user', lazy=True,
                                          cascade='all, delete-orphan')

    def set_password(self, password):
        """Set user password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if password is correct."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def webauthn_user_handle(self):
        """Opaque user handle presented to authenticators (8-byte big-endian ID)."""
        return int(self.id).to_bytes(8, 'big')

    @property
    def webauthn_name(self):
        return self.email or self.username or ""

    @property
    def webauthn_display_name(self):
        if self.first_name:
            if self.last_name:
                return f"{self.first_name} {self.last_name}"
            return self.first_name
        return self.webauthn_name

    def __repr__(self):
        return f'<User {self.id}: {self.email}>'


class OAuthAccount(db.Model):
    """An external identity (Apple subject, OAuth provider user) linked to a user."""

    __tablename__ = "oauth_accounts"
    __table_args__ = (
        db.UniqueConstraint('provider', 'provider_user_id', name='uq_oauth_provider_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    provider = db.Column(db.String(32), nullable=False)
    provider_user_id = db.Column(db.String(255), nullable=False)
    provider_email = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='oauth_accounts')

    def __repr__(self):
        return f'<OAuthAccount {self.provider}:{self.provider_user_id}>'


class UserPreferences(db.Model):
    """Per-user preferences, created with defaults alongside every new user."""

    __tablename__ = "user_preferences"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    notification_email = db.Column(db.Boolean, default=True)
    theme = db.Column(db.String(20), default='light')
    timezone = db.Column(db.String(64), default='UTC')
    language = db.Column(db.String(10), default='en')
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship('User', back_populates='preferences')
