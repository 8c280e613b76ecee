"""CLI commands for the application."""

import click
from flask.cli import with_appcontext
from gigauth.extensions import db
from gigauth.services.container import container

@click.command('init-db')
@with_appcontext
def init_db_command():
    """Create the database tables."""
    click.echo("Creating database tables...")
    db.create_all()
    click.echo("Database tables created!")

@click.command('create-api-token')
@click.argument('email')
@click.option('--description', '-d', default=None, help='What the token is used for.')
@click.option('--days', type=int, default=None, help='Days until the token expires (default 90).')
@with_appcontext
def create_api_token_command(email, description, days):
    """Create an admin API token for the user with EMAIL."""
    user = container().get('user_service').get_user_by_email(email)
    if user is None:
        raise click.ClickException(f"No user with email {email}")
    if not user.is_admin:
        raise click.ClickException(f"User {email} is not an admin")

    raw_token, record = container().get('api_token_service').create(user.id, description, days)
    click.echo(f"Created API token {record.id}, expires {record.expires_at:%Y-%m-%d %H:%M} UTC")
    click.echo("Store it now, it will not be shown again:")
    click.echo(raw_token)

@click.command('cleanup-credentials')
@with_appcontext
def cleanup_credentials_command():
    """Remove expired API tokens and WebAuthn challenges now."""
    from gigauth.tasks.cleanup_tasks import cleanup_expired_credentials
    results = cleanup_expired_credentials()
    for kind, count in results.items():
        if count is None:
            click.echo(f"{kind}: failed, see logs")
        else:
            click.echo(f"{kind}: removed {count}")

def register_commands(app):
    """Register CLI commands with the Flask application."""
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_api_token_command)
    app.cli.add_command(cleanup_credentials_command)
