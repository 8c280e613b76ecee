"""Tests for UserService"""

from unittest.mock import MagicMock, patch

import pytest

from gigauth.errors import (
    InvalidCredentialsError,
    UserExistsError,
    UserInactiveError,
    UserNotFoundError,
    ValidationError,
)
from gigauth.models.user_repository import SqlAlchemyUserRepository
from gigauth.services.password_validator import PasswordValidationResult
from gigauth.services.user_service import UserService

PASSWORD = 'correct horse battery staple'


@pytest.fixture
def password_validator():
    validator = MagicMock()
    validator.validate_password.return_value = PasswordValidationResult()
    return validator

@pytest.fixture
def user_service(db, password_validator):
    return UserService(SqlAlchemyUserRepository(db), password_validator)


def test_get_user_by_id(user_service, normal_user):
    assert user_service.get_user_by_id(normal_user.id).email == normal_user.email

def test_get_user_by_id_missing(user_service):
    with pytest.raises(UserNotFoundError):
        user_service.get_user_by_id(9999)

def test_get_user_by_id_inactive(user_service, inactive_user):
    with pytest.raises(UserInactiveError):
        user_service.get_user_by_id(inactive_user.id)

def test_get_user_by_email_normalises(user_service, normal_user):
    assert user_service.get_user_by_email('  TEST@Example.com ').id == normal_user.id
    assert user_service.get_user_by_email('') is None

def test_authenticate_with_password(user_service, normal_user):
    assert user_service.authenticate_with_password('test@example.com', PASSWORD).id == normal_user.id

def test_authenticate_wrong_password(user_service, normal_user):
    with pytest.raises(InvalidCredentialsError):
        user_service.authenticate_with_password('test@example.com', 'wrong password')

def test_authenticate_unknown_email_still_compares_hash(user_service):
    with patch('gigauth.services.user_service.check_password_hash') as mock_check:
        with pytest.raises(InvalidCredentialsError):
            user_service.authenticate_with_password('nobody@example.com', PASSWORD)
    mock_check.assert_called_once()

def test_authenticate_passwordless_user(user_service, normal_user, db):
    normal_user.password_hash = None
    db.session.commit()
    with pytest.raises(InvalidCredentialsError):
        user_service.authenticate_with_password('test@example.com', PASSWORD)

def test_authenticate_inactive_user(user_service, inactive_user):
    with pytest.raises(UserInactiveError):
        user_service.authenticate_with_password('inactive@example.com', PASSWORD)

def test_create_user_with_password(user_service, password_validator):
    user = user_service.create_user_with_password('New@Example.com', 'a long enough passphrase', 'Ada', 'Lovelace')

    password_validator.validate_password.assert_called_once_with('a long enough passphrase')
    assert user.id is not None
    assert user.email == 'new@example.com'
    assert user.check_password('a long enough passphrase')
    assert user.preferences is not None

def test_create_user_with_invalid_password(user_service, password_validator):
    password_validator.validate_password.return_value = PasswordValidationResult(
        valid=False, errors=['Password must be at least 12 characters']
    )
    with pytest.raises(ValidationError) as exc_info:
        user_service.create_user_with_password('new@example.com', 'short')
    assert exc_info.value.details == ['Password must be at least 12 characters']

def test_create_user_with_breach_warning_still_succeeds(user_service, password_validator):
    password_validator.validate_password.return_value = PasswordValidationResult(
        warnings=['Could not verify password against breach database']
    )
    assert user_service.create_user_with_password('new@example.com', 'a long enough passphrase').id

def test_create_user_duplicate_email(user_service, normal_user):
    with pytest.raises(UserExistsError):
        user_service.create_user_with_password('test@example.com', 'a long enough passphrase')

def test_create_user_without_password(user_service):
    user = user_service.create_user_without_password('passkey@example.com')
    assert user.password_hash is None
    assert user.preferences is not None

def test_create_user_without_password_duplicate(user_service, normal_user):
    with pytest.raises(UserExistsError):
        user_service.create_user_without_password('test@example.com')
