"""
Stateless double-submit CSRF tokens.

A token is a random value signed with a timestamp. The server never stores
it; validity and age are checked from the signature alone, so any instance
behind a load balancer can verify a token issued by any other.
"""

import secrets

from django.conf import settings
from django.core import signing

SIGNING_SALT = 'core.csrf.double-submit'


class CSRFTokenError(Exception):
    """Raised when a CSRF token fails verification."""

    def __init__(self, message, code):
        super().__init__(message)
        self.message = message
        self.code = code


def issue_csrf_token():
    """Return a new signed CSRF token."""
    return signing.TimestampSigner(salt=SIGNING_SALT).sign(secrets.token_urlsafe(32))


def verify_csrf_token(token, max_age=None):
    """
    Check the signature and age of a CSRF token.

    Args:
        token: Token string echoed back by the client
        max_age: Maximum age in seconds (defaults to CSRF_TOKEN_TTL)

    Raises:
        CSRFTokenError: If the token is expired or was not issued by us
    """
    if max_age is None:
        max_age = settings.CSRF_TOKEN_TTL

    try:
        signing.TimestampSigner(salt=SIGNING_SALT).unsign(token, max_age=max_age)
    except signing.SignatureExpired:
        raise CSRFTokenError('CSRF token has expired', 'CSRF_TOKEN_EXPIRED')
    except signing.BadSignature:
        raise CSRFTokenError('Invalid CSRF token', 'CSRF_TOKEN_INVALID')
