"""Background task processing."""

import logging

from gigauth.extensions import scheduler

log = logging.getLogger("tasks")

def init_tasks(app):
    """Register scheduled tasks and start the scheduler."""
    from gigauth.tasks.cleanup_tasks import setup_cleanup_jobs

    setup_cleanup_jobs(app)

    if not scheduler.running:
        scheduler.start()
        log.info("Scheduler started")
