"""Tests for SessionTokenService"""

from datetime import timedelta
from unittest.mock import MagicMock

import jwt
import pytest

from gigauth.errors import (
    TokenExpiredError,
    TokenInvalidError,
    UserInactiveError,
    UserNotFoundError,
)
from gigauth.models.user_repository import SqlAlchemyUserRepository
from gigauth.services.session_token_service import (
    SIGNING_ALGORITHM,
    TOKEN_AUDIENCE,
    TOKEN_ISSUER,
    SessionTokenService,
)
from gigauth.services.user_service import UserService

SECRET = 'testing-jwt-secret-key-with-32-plus-bytes'
NOW = 1_700_000_000


class FakeClock:
    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def token_service(db, clock):
    user_service = UserService(SqlAlchemyUserRepository(db))
    return SessionTokenService(user_service, SECRET, expiry_hours=24, clock=clock)


def test_requires_secret():
    with pytest.raises(ValueError):
        SessionTokenService(MagicMock(), '')

def test_issue_sets_claims(token_service, normal_user):
    token = token_service.issue(normal_user)
    claims = jwt.decode(token, SECRET, algorithms=[SIGNING_ALGORITHM],
                        audience=TOKEN_AUDIENCE, options={'verify_exp': False, 'verify_iat': False})

    assert claims['user_id'] == normal_user.id
    assert claims['email'] == normal_user.email
    assert claims['iss'] == TOKEN_ISSUER
    assert claims['aud'] == TOKEN_AUDIENCE
    assert claims['iat'] == NOW
    assert claims['exp'] == NOW + 24 * 3600

def test_verify_returns_current_user(token_service, normal_user):
    token = token_service.issue(normal_user)
    assert token_service.verify(token).id == normal_user.id

def test_verify_rejects_expired_token(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 24 * 3600
    with pytest.raises(TokenExpiredError):
        token_service.verify(token)

def test_verify_accepts_token_just_before_expiry(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 24 * 3600 - 1
    assert token_service.verify(token).id == normal_user.id

@pytest.mark.parametrize('token', ['', 'not-a-jwt', 'a.b.c'])
def test_verify_rejects_malformed(token_service, token):
    with pytest.raises(TokenInvalidError):
        token_service.verify(token)

def test_verify_rejects_wrong_secret(token_service, normal_user, clock):
    other = SessionTokenService(MagicMock(), 'another-secret-key-with-32-plus-bytes!', clock=clock)
    with pytest.raises(TokenInvalidError):
        token_service.verify(other.issue(normal_user))

@pytest.mark.parametrize('claim,value', [('iss', 'someone-else'), ('aud', 'other-audience')])
def test_verify_rejects_wrong_issuer_or_audience(token_service, normal_user, claim, value):
    claims = {
        'user_id': normal_user.id,
        'email': normal_user.email,
        'iat': NOW,
        'exp': NOW + 3600,
        'iss': TOKEN_ISSUER,
        'aud': TOKEN_AUDIENCE,
    }
    claims[claim] = value
    token = jwt.encode(claims, SECRET, algorithm=SIGNING_ALGORITHM)
    with pytest.raises(TokenInvalidError):
        token_service.verify(token)

def test_verify_rejects_audience_list(token_service, normal_user):
    token = jwt.encode({
        'user_id': normal_user.id,
        'iat': NOW,
        'exp': NOW + 3600,
        'iss': TOKEN_ISSUER,
        'aud': [TOKEN_AUDIENCE, 'other'],
    }, SECRET, algorithm=SIGNING_ALGORITHM)
    with pytest.raises(TokenInvalidError):
        token_service.verify(token)

def test_verify_rejects_tampered_payload(token_service, normal_user):
    header, payload, signature = token_service.issue(normal_user).split('.')
    middle = len(payload) // 2
    flipped = 'B' if payload[middle] == 'A' else 'A'
    tampered = payload[:middle] + flipped + payload[middle + 1:]
    with pytest.raises(TokenInvalidError):
        token_service.verify('.'.join([header, tampered, signature]))

def test_verify_rejects_none_algorithm(token_service, normal_user):
    token = jwt.encode({
        'user_id': normal_user.id,
        'exp': NOW + 3600,
        'iss': TOKEN_ISSUER,
        'aud': TOKEN_AUDIENCE,
    }, None, algorithm='none')
    with pytest.raises(TokenInvalidError):
        token_service.verify(token)

def test_verify_rejects_missing_user_id(token_service):
    token = jwt.encode({
        'exp': NOW + 3600,
        'iss': TOKEN_ISSUER,
        'aud': TOKEN_AUDIENCE,
    }, SECRET, algorithm=SIGNING_ALGORITHM)
    with pytest.raises(TokenInvalidError):
        token_service.verify(token)

def test_verify_unknown_user(token_service, normal_user, db):
    token = token_service.issue(normal_user)
    db.session.delete(normal_user)
    db.session.commit()
    with pytest.raises(UserNotFoundError):
        token_service.verify(token)

def test_verify_deactivated_user(token_service, normal_user, db):
    token = token_service.issue(normal_user)
    normal_user.is_active = False
    db.session.commit()
    with pytest.raises(UserInactiveError):
        token_service.verify(token)

def test_lenient_accepts_within_grace(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 24 * 3600 + 6 * 24 * 3600
    assert token_service.verify_lenient(token, timedelta(days=7)).id == normal_user.id

def test_lenient_accepts_exactly_at_grace_boundary(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 24 * 3600 + 7 * 24 * 3600
    assert token_service.verify_lenient(token, timedelta(days=7)).id == normal_user.id

def test_lenient_rejects_beyond_grace(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 24 * 3600 + 7 * 24 * 3600 + 1
    with pytest.raises(TokenExpiredError) as exc_info:
        token_service.verify_lenient(token, timedelta(days=7))
    assert exc_info.value.message == 'expired beyond grace period'

def test_lenient_accepts_grace_in_seconds(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 24 * 3600 + 30
    assert token_service.verify_lenient(token, 60).id == normal_user.id

def test_lenient_still_checks_signature(token_service):
    with pytest.raises(TokenInvalidError):
        token_service.verify_lenient('garbage', timedelta(days=7))

def test_lenient_rejects_missing_exp(token_service, normal_user):
    token = jwt.encode({
        'user_id': normal_user.id,
        'iat': NOW,
        'iss': TOKEN_ISSUER,
        'aud': TOKEN_AUDIENCE,
    }, SECRET, algorithm=SIGNING_ALGORITHM)
    with pytest.raises(TokenInvalidError):
        token_service.verify_lenient(token, 60)

@pytest.mark.parametrize('claim,value', [
    ('iss', 'someone-else'),
    ('aud', 'other-audience'),
    ('aud', [TOKEN_AUDIENCE, 'other']),
])
def test_lenient_rejects_wrong_issuer_or_audience(token_service, normal_user, claim, value):
    claims = {
        'user_id': normal_user.id,
        'iat': NOW,
        'exp': NOW - 30,
        'iss': TOKEN_ISSUER,
        'aud': TOKEN_AUDIENCE,
    }
    claims[claim] = value
    token = jwt.encode(claims, SECRET, algorithm=SIGNING_ALGORITHM)
    with pytest.raises(TokenInvalidError):
        token_service.verify_lenient(token, timedelta(days=7))

def test_refresh_issues_new_token(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 60
    refreshed = token_service.refresh(token)

    assert refreshed != token
    clock.now += 24 * 3600 - 120
    assert token_service.verify(refreshed).id == normal_user.id

def test_refresh_lenient_revives_recently_expired_token(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 25 * 3600
    refreshed = token_service.refresh_lenient(token, timedelta(days=7))
    assert token_service.verify(refreshed).id == normal_user.id

def test_refresh_rejects_expired_token(token_service, normal_user, clock):
    token = token_service.issue(normal_user)
    clock.now += 25 * 3600
    with pytest.raises(TokenExpiredError):
        token_service.refresh(token)

def test_refresh_lenient_defaults_to_configured_grace(db, clock, normal_user):
    service = SessionTokenService(UserService(SqlAlchemyUserRepository(db)), SECRET,
                                  refresh_grace=timedelta(hours=1), clock=clock)
    token = service.issue(normal_user)

    clock.now += 24 * 3600 + 1800
    assert service.refresh_lenient(token)

    clock.now += 3600
    with pytest.raises(TokenExpiredError):
        service.refresh_lenient(token)
