import json
from enum import Enum
from gigauth.extensions import db
from gigauth.utils.clock import utcnow


class ChallengeOperation(Enum):
    """Ceremony a stored challenge belongs to."""

    REGISTRATION = "registration"
    AUTHENTICATION = "authentication"
    SIGNUP_REGISTRATION = "signup_registration"


class WebAuthnCredential(db.Model):
    """Model for storing WebAuthn (passkey) credentials."""

    __tablename__ = "webauthn_credentials"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    # base64url encoded, as sent by browsers in ``rawId``
    credential_id = db.Column(db.String(1024), unique=True, nullable=False)
    public_key = db.Column(db.LargeBinary, nullable=False)
    sign_count = db.Column(db.Integer, default=0)
    aaguid = db.Column(db.String(36), nullable=True)
    clone_warning = db.Column(db.Boolean, default=False)
    attestation_type = db.Column(db.String(50), nullable=True)
    transports = db.Column(db.Text, nullable=True)
    backup_eligible = db.Column(db.Boolean, default=False)
    backup_state = db.Column(db.Boolean, default=False)
    display_name = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', back_populates='passkey_credentials')

    def __repr__(self):
        return f'<WebAuthnCredential {self.id}: {self.display_name}>'

    def get_transports(self):
        if not self.transports:
            return []
        return json.loads(self.transports)

    def to_dict(self):
        return {
            'id': self.id,
            'display_name': self.display_name,
            'created_at': self.created_at,
            'last_used_at': self.last_used_at,
            'backup_eligible': self.backup_eligible,
            'backup_state': self.backup_state,
        }


class WebAuthnChallenge(db.Model):
    """A pending ceremony challenge. Single use, short lived."""

    __tablename__ = "webauthn_challenges"

    id = db.Column(db.String(64), primary_key=True)
    # Sign-up ceremonies have no user yet and are keyed by email instead.
    user_id = db.Column(db.Integer, nullable=True, index=True)
    pending_email = db.Column(db.String(255), nullable=True)
    challenge = db.Column(db.LargeBinary, nullable=False)
    session_data = db.Column(db.Text, nullable=False)
    operation = db.Column(db.String(32), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __repr__(self):
        return f'<WebAuthnChallenge {self.id}: {self.operation}>'
