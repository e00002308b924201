"""
JWT authentication classes for the marketplace API.
"""

import logging

from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import SAFE_METHODS
from rest_framework_simplejwt.authentication import JWTAuthentication

logger = logging.getLogger(__name__)


class MarketplaceJWTAuthentication(JWTAuthentication):
    """
    Bearer-token authentication that also refuses banned accounts.

    The ban flag is read from the database rather than from the token's
    ``is_banned`` claim, so a ban takes effect on the next request.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)

        if getattr(user, 'is_banned', False):
            logger.warning(f"Rejected request from banned user {user.pk}")
            raise AuthenticationFailed('Your account has been banned', code='user_banned')

        return user


class OptionalJWTAuthentication(MarketplaceJWTAuthentication):
    """
    Authenticate when a valid token is present, otherwise treat the caller
    as a guest instead of failing with 401.

    Used by endpoints open to visitors that behave differently for signed-in
    users (view counting, visit tracking, reports).
    """

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except AuthenticationFailed as exc:
            logger.debug(f"Ignoring invalid token on optional-auth endpoint: {exc}")
            return None


class ReadOptionalJWTAuthentication(MarketplaceJWTAuthentication):
    """
    Optional authentication for safe methods, strict for everything else.

    For endpoints where anyone may read but only signed-in users may write
    (e.g. GET/POST /api/animals/).
    """

    def authenticate(self, request):
        if request.method not in SAFE_METHODS:
            return super().authenticate(request)

        try:
            return super().authenticate(request)
        except AuthenticationFailed as exc:
            logger.debug(f"Ignoring invalid token on read request: {exc}")
            return None
