from gigauth.extensions import db
from gigauth.utils.clock import utcnow


class APIToken(db.Model):
    """Model for opaque API tokens.

    Only the SHA-256 digest of the raw token is stored; the raw value is shown
    to its owner once, at creation.
    """

    __tablename__ = "api_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)
    scope = db.Column(db.String(32), nullable=False, default='admin')
    created_at = db.Column(db.DateTime, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    revoked_at = db.Column(db.DateTime, nullable=True)
    last_used_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', foreign_keys=[user_id])

    def __repr__(self):
        return f'<APIToken {self.id}: user {self.user_id}>'

    @property
    def is_expired(self):
        return utcnow() > self.expires_at

    @property
    def is_revoked(self):
        return self.revoked_at is not None

    @property
    def is_valid(self):
        return not self.is_revoked and not self.is_expired

    def to_dict(self):
        """Public representation; never includes the hash."""
        return {
            'id': self.id,
            'description': self.description,
            'scope': self.scope,
            'created_at': self.created_at,
            'expires_at': self.expires_at,
            'last_used_at': self.last_used_at,
            'is_expired': self.is_expired,
        }
