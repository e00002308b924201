"""
Success responses in the API envelope ``{success, data, message?, pagination?}``.
"""

from rest_framework import status
from rest_framework.response import Response


def api_response(data=None, message=None, pagination=None, status_code=status.HTTP_200_OK, success=True):
    """
    Build an enveloped DRF Response.

    Args:
        data: Payload placed under ``data``
        message: Optional human-readable message
        pagination: Optional pagination metadata dict
        status_code: HTTP status code
        success: Value of the ``success`` flag

    Returns:
        Response: DRF response
    """
    body = {'success': success, 'data': data}
    if message:
        body['message'] = message
    if pagination is not None:
        body['pagination'] = pagination
    return Response(body, status=status_code)
