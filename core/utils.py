"""
Small helpers shared by views and services.
"""

import logging
from contextlib import contextmanager

from django.db import transaction

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """
    Get client IP address from request.

    Handles proxy headers for accurate IP detection.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


@contextmanager
def best_effort(action):
    """
    Run a non-critical side effect without letting it fail the caller.

    The block runs inside its own savepoint so a database error rolls back
    only the side effect. Failures are logged with their traceback.

    Usage:
        with best_effort('notify listing owner'):
            notifications.notify_listing_moderated(listing)
    """
    try:
        with transaction.atomic():
            yield
    except Exception as exc:
        logger.error(f"Side effect '{action}' failed: {exc}", exc_info=True)
