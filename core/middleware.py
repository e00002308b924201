"""
Double-submit CSRF protection for the JSON API.

State-changing requests under /api/ must echo the token from the
``XSRF-TOKEN`` cookie in an ``X-CSRF-Token`` (or ``X-XSRF-Token``) header.
"""

import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils.crypto import constant_time_compare

from .csrf import CSRFTokenError, verify_csrf_token

logger = logging.getLogger(__name__)

SAFE_METHODS = ('GET', 'HEAD', 'OPTIONS', 'TRACE')


class DoubleSubmitCSRFMiddleware:
    """
    Reject unsafe API requests whose CSRF header and cookie do not match.

    Disabled when CSRF_DOUBLE_SUBMIT_ENABLED is False. The token issuing
    endpoint itself (CSRF_EXEMPT_PATHS) is never checked.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if self._requires_check(request):
            failure = self._check(request)
            if failure is not None:
                return failure
        return self.get_response(request)

    def _requires_check(self, request):
        if not getattr(settings, 'CSRF_DOUBLE_SUBMIT_ENABLED', True):
            return False
        if request.method in SAFE_METHODS:
            return False
        if not request.path.startswith('/api/'):
            return False
        return request.path not in settings.CSRF_EXEMPT_PATHS

    def _check(self, request):
        header_token = None
        for header in settings.CSRF_TOKEN_HEADERS:
            header_token = request.META.get(header)
            if header_token:
                break

        if not header_token:
            return self._reject(request, 'CSRF token missing', 'CSRF_TOKEN_MISSING')

        cookie_token = request.COOKIES.get(settings.CSRF_TOKEN_COOKIE_NAME)
        if not cookie_token:
            return self._reject(request, 'CSRF cookie missing', 'CSRF_COOKIE_MISSING')

        if not constant_time_compare(header_token, cookie_token):
            return self._reject(request, 'CSRF token mismatch', 'CSRF_TOKEN_MISMATCH')

        try:
            verify_csrf_token(header_token)
        except CSRFTokenError as exc:
            return self._reject(request, exc.message, exc.code)

        return None

    def _reject(self, request, message, code):
        logger.warning(f"CSRF check failed ({code}) for {request.method} {request.path}")
        return JsonResponse(
            {'success': False, 'message': message, 'code': code},
            status=403
        )
