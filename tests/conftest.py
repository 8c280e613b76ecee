import os
import tempfile
import pytest
from datetime import datetime

from gigauth import create_app
from gigauth.extensions import db as _db
from gigauth.models.user import User, UserPreferences
from werkzeug.security import generate_password_hash


@pytest.fixture
def app():
    """Create and configure a Flask app for testing."""
    # Create a temp file to isolate the database for each test
    db_fd, db_path = tempfile.mkstemp()

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': 'test-key',
        'JWT_SECRET_KEY': 'testing-jwt-secret-key-with-32-plus-bytes',
        'WEBAUTHN_RP_ID': 'localhost',
        'WEBAUTHN_RP_ORIGINS': ['http://localhost:3000'],
        'APPLE_BUNDLE_ID': 'com.giglistings.ios',
    })

    # Create the database and tables
    with app.app_context():
        _db.create_all()

    yield app

    # Close and remove the temp database
    with app.app_context():
        _db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)

@pytest.fixture
def db(app):
    """Create a database instance for testing."""
    with app.app_context():
        _db.drop_all()
        _db.create_all()
        yield _db
        _db.session.remove()

@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()

@pytest.fixture
def runner(app):
    """A test CLI runner for the app."""
    return app.test_cli_runner()

def _make_user(db, email, is_admin=False, is_active=True):
    user = User(
        username=email.split('@')[0],
        email=email,
        password_hash=generate_password_hash('correct horse battery staple'),
        first_name='Test',
        last_name='User',
        is_active=is_active,
        is_admin=is_admin,
        email_verified=True,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow()
    )
    db.session.add(user)
    db.session.flush()
    db.session.add(UserPreferences(user_id=user.id))
    db.session.commit()
    return user

@pytest.fixture
def normal_user(db):
    """Create a normal user for testing."""
    return _make_user(db, 'test@example.com')

@pytest.fixture
def admin_user(db):
    """Create an admin user for testing."""
    return _make_user(db, 'admin@example.com', is_admin=True)

@pytest.fixture
def inactive_user(db):
    """Create a deactivated user for testing."""
    return _make_user(db, 'inactive@example.com', is_active=False)
