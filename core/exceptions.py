"""
Error types and the DRF exception handler for the marketplace API.

Every error leaves the API as ``{"success": false, "message": "..."}``.
Validation errors also carry the field-level ``errors`` produced by the
serializer or model. Unexpected exceptions are logged with their traceback
and answered with a generic 500 so no internals reach the client.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'Internal server error'


class BusinessRuleError(exceptions.APIException):
    """
    A well-formed request that breaks a marketplace rule.

    Examples: rating yourself, messaging yourself, a duplicate slug.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request violates a marketplace rule.'
    default_code = 'business_rule'


def first_error_message(detail):
    """
    Pull the first human-readable message out of a DRF error structure.

    Args:
        detail: str, list or dict as found in ``exc.detail`` / ``response.data``

    Returns:
        str: The first message found, or an empty string
    """
    if isinstance(detail, dict):
        if 'detail' in detail:
            return first_error_message(detail['detail'])
        for value in detail.values():
            message = first_error_message(value)
            if message:
                return message
        return ''

    if isinstance(detail, (list, tuple)):
        for item in detail:
            message = first_error_message(item)
            if message:
                return message
        return ''

    return str(detail) if detail is not None else ''


def _as_drf_validation_error(exc):
    if hasattr(exc, 'error_dict'):
        return exceptions.ValidationError(detail=exc.message_dict)
    return exceptions.ValidationError(detail=exc.messages)


def envelope_exception_handler(exc, context):
    """
    Convert any exception raised in a view into the response envelope.

    Args:
        exc: The raised exception
        context: DRF handler context (contains the view and request)

    Returns:
        Response: Error response with ``success`` set to False
    """
    if isinstance(exc, DjangoValidationError):
        exc = _as_drf_validation_error(exc)

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        view_name = view.__class__.__name__ if view is not None else 'unknown view'
        logger.error(f"Unhandled error in {view_name}: {exc}", exc_info=exc)
        set_rollback()
        return Response(
            {'success': False, 'message': GENERIC_ERROR_MESSAGE},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    body = {
        'success': False,
        'message': first_error_message(response.data) or 'Request failed',
    }

    if isinstance(exc, exceptions.ValidationError) and isinstance(response.data, dict):
        body['errors'] = response.data

    code = getattr(exc, 'default_code', None)
    detail = getattr(exc, 'detail', None)
    if hasattr(detail, 'code') and detail.code:
        code = detail.code
    if code:
        body['code'] = code

    response.data = body
    return response
