"""Tests for the authentication view decorators"""

from datetime import timedelta

import pytest
from flask import g, jsonify

from gigauth.decorators import admin_required, lenient_token_required, token_required
from gigauth.services.container import container
from gigauth.services.session_token_service import SessionTokenService


@pytest.fixture
def app(app):
    @app.route('/me')
    @token_required
    def me():
        return jsonify({'user_id': g.user.id, 'via_api_token': g.api_token is not None})

    @app.route('/refresh')
    @lenient_token_required(grace=timedelta(days=7))
    def refresh():
        return jsonify({'user_id': g.user.id})

    @app.route('/admin')
    @admin_required
    def admin():
        return jsonify({'user_id': g.user.id})

    return app

def session_token(app, user, now=None):
    with app.app_context():
        service = container().get('session_token_service')
        if now is not None:
            service = SessionTokenService(service.user_service, app.config['JWT_SECRET_KEY'],
                                          clock=lambda: now)
        return service.issue(user)

def api_token(app, user):
    with app.app_context():
        raw, _ = container().get('api_token_service').create(user.id)
        return raw


def test_missing_token(client, db):
    response = client.get('/me')
    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'TOKEN_MISSING'

def test_bearer_session_token(app, client, normal_user):
    token = session_token(app, normal_user)
    response = client.get('/me', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 200
    assert response.get_json() == {'user_id': normal_user.id, 'via_api_token': False}

def test_cookie_session_token(app, client, normal_user):
    token = session_token(app, normal_user)
    client.set_cookie('auth_token', token)
    response = client.get('/me')
    assert response.status_code == 200

def test_invalid_session_token(client, db):
    response = client.get('/me', headers={'Authorization': 'Bearer not-a-token'})
    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'TOKEN_INVALID'

def test_expired_session_token(app, client, normal_user):
    import time
    token = session_token(app, normal_user, now=time.time() - 2 * 24 * 3600)
    response = client.get('/me', headers={'Authorization': f'Bearer {token}'})
    assert response.get_json()['error_code'] == 'TOKEN_EXPIRED'

def test_lenient_accepts_recently_expired_token(app, client, normal_user):
    import time
    token = session_token(app, normal_user, now=time.time() - 2 * 24 * 3600)
    response = client.get('/refresh', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 200

def test_api_token_dispatch(app, client, admin_user):
    token = api_token(app, admin_user)
    response = client.get('/me', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 200
    assert response.get_json() == {'user_id': admin_user.id, 'via_api_token': True}

def test_unknown_api_token(client, db):
    response = client.get('/me', headers={'Authorization': 'Bearer gak_' + '0' * 64})
    assert response.status_code == 401
    assert response.get_json()['error_code'] == 'API_TOKEN_INVALID'

def test_admin_required_rejects_normal_user(app, client, normal_user):
    token = session_token(app, normal_user)
    response = client.get('/admin', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 403
    assert response.get_json()['error_code'] == 'NOT_ADMIN'

def test_admin_required_accepts_admin(app, client, admin_user):
    token = session_token(app, admin_user)
    response = client.get('/admin', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 200

def test_unknown_user_is_reported_as_invalid_credentials(app, client, normal_user, db):
    token = session_token(app, normal_user)
    db.session.delete(normal_user)
    db.session.commit()
    response = client.get('/me', headers={'Authorization': f'Bearer {token}'})
    assert response.get_json()['error_code'] == 'INVALID_CREDENTIALS'
