"""Tasks for sweeping expired credentials."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from gigauth.extensions import scheduler
from gigauth.services.container import container

log = logging.getLogger("cleanup_tasks")

def cleanup_expired_credentials():
    """Remove expired API tokens and WebAuthn challenges.

    Returns:
        dict: rows removed per credential kind; ``None`` for a kind whose
        sweep failed and will be retried on the next run.
    """
    results = {}

    try:
        results['api_tokens'] = container().get('api_token_service').cleanup_expired()
    except SQLAlchemyError as e:
        log.error(f"API token cleanup failed, will retry next sweep: {str(e)}")
        results['api_tokens'] = None

    try:
        results['webauthn_challenges'] = container().get('webauthn_service').cleanup_expired_challenges()
    except SQLAlchemyError as e:
        log.error(f"WebAuthn challenge cleanup failed, will retry next sweep: {str(e)}")
        results['webauthn_challenges'] = None

    removed = sum(count for count in results.values() if count)
    if removed > 0:
        log.info(f"Cleaned up {removed} expired credentials")
    return results

def setup_cleanup_jobs(app):
    """Register cleanup jobs with the scheduler."""
    hours = app.config.get('CLEANUP_INTERVAL_HOURS', 1)

    def run_cleanup():
        with app.app_context():
            cleanup_expired_credentials()

    scheduler.add_job(
        id='cleanup_expired_credentials',
        func=run_cleanup,
        trigger='interval',
        hours=hours,
        replace_existing=True
    )

    app.logger.info(f"Credential cleanup job registered every {hours} hour(s)")
