import os
from flask import Flask

from gigauth.commands import register_commands
from gigauth.config import TestingConfig, get_config, validate_config
from gigauth.errors import register_error_handlers
from gigauth.extensions import db, init_extensions
from gigauth.logger import setup_logging
from gigauth.services.container import init_container

def create_app(test_config=None):
    """Application factory function."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    if test_config is None:
        config_name = os.environ.get('FLASK_ENV', 'default')
        app.config.from_object(get_config(config_name))
    else:
        app.config.from_object(TestingConfig)
        app.config.from_mapping(test_config)

    validate_config(app)

    setup_logging(app)
    init_extensions(app)
    init_container(app)
    register_error_handlers(app)
    register_commands(app)

    # Import models so their tables are registered
    from gigauth import models  # noqa: F401

    if not app.config.get('TESTING'):
        with app.app_context():
            db.create_all()
        from gigauth.tasks import init_tasks
        init_tasks(app)

    @app.teardown_appcontext
    def teardown_db(exception=None):
        """Clean up at the end of the request."""
        db.session.remove()

    return app
