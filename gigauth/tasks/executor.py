"""Task executor for background processing."""

import concurrent.futures
import logging
from functools import wraps

from flask import current_app

logger = logging.getLogger(__name__)

# Create a thread pool executor for background tasks
executor = concurrent.futures.ThreadPoolExecutor(max_workers=5)

def async_task(f):
    """Decorator to run a function asynchronously inside the current app context.

    Errors are logged and swallowed: background work is best effort and must
    never surface in the request that scheduled it.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        app = current_app._get_current_object()

        def run():
            with app.app_context():
                try:
                    return f(*args, **kwargs)
                except Exception:
                    logger.exception(f"Background task {f.__name__} failed")
                    return None

        return executor.submit(run)
    return wrapper

def run_in_background(f, *args, **kwargs):
    """Submit ``f`` to the executor with the current app context."""
    return async_task(f)(*args, **kwargs)
