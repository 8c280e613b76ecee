"""
Initialize Flask extensions for the application.

These extensions are instantiated here and initialized in the application factory.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_apscheduler import APScheduler

# SQLAlchemy for database ORM
db = SQLAlchemy()

# Scheduler for the credential expiry sweeps
scheduler = APScheduler()

def init_extensions(app):
    """Initialize all Flask extensions."""
    db.init_app(app)

    # The scheduler only runs outside of tests
    if not app.config.get('TESTING'):
        scheduler.init_app(app)
