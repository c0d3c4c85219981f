from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


def error_response(message, details=None, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR):
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return Response(body, status=status_code)


def api_exception_handler(exc, context):
    """DRF's handler, reshaped to the ``{"error", "details"}`` body the views return."""
    response = exception_handler(exc, context)
    if response is None:
        return None
    detail = getattr(exc, "detail", response.data)
    if isinstance(detail, (list, dict)):
        response.data = {"error": "Invalid request", "details": detail}
    else:
        response.data = {"error": str(detail)}
    return response
