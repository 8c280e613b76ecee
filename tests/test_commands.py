"""Tests for the CLI commands"""

from gigauth.models.api_token import APIToken
from gigauth.services.api_token_service import TOKEN_PREFIX, hash_token


def test_init_db(runner, app):
    result = runner.invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'Database tables created!' in result.output

def test_create_api_token(runner, db, admin_user):
    result = runner.invoke(args=['create-api-token', 'admin@example.com', '--description', 'deploys'])

    assert result.exit_code == 0
    raw = result.output.strip().splitlines()[-1]
    assert raw.startswith(TOKEN_PREFIX)
    record = db.session.query(APIToken).filter_by(token_hash=hash_token(raw)).one()
    assert record.description == 'deploys'
    assert record.user_id == admin_user.id

def test_create_api_token_for_non_admin(runner, db, normal_user):
    result = runner.invoke(args=['create-api-token', 'test@example.com'])
    assert result.exit_code != 0
    assert 'not an admin' in result.output

def test_create_api_token_unknown_user(runner, db):
    result = runner.invoke(args=['create-api-token', 'nobody@example.com'])
    assert result.exit_code != 0
    assert 'No user with email' in result.output

def test_cleanup_credentials(runner, db):
    result = runner.invoke(args=['cleanup-credentials'])
    assert result.exit_code == 0
    assert 'api_tokens: removed 0' in result.output
    assert 'webauthn_challenges: removed 0' in result.output
