"""
Response envelope helpers shared by the commerce views.

Maps service ErrorCodes to HTTP status codes and renders the discriminated
``__typename`` envelope. Unexpected failures are reported with a generic
message in production and with the raw error text elsewhere.
"""

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response

from commerce.api.serializers import BaseResponseSerializer, ErrorResponseSerializer
from commerce.services.base import ErrorCodes, ServiceResult

logger = logging.getLogger(__name__)

TYPENAME_BASE = "BaseResponse"
TYPENAME_ERROR = "ErrorResponse"

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."

ERROR_STATUS = {
    ErrorCodes.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCodes.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCodes.COUPON_EMAIL_NOT_ALLOWED: status.HTTP_403_FORBIDDEN,
    ErrorCodes.CART_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.ITEM_NOT_IN_CART: status.HTTP_404_NOT_FOUND,
    ErrorCodes.COUPON_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.TAX_OPTIONS_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.CART_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCodes.UPSTREAM_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCodes.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCodes.DATABASE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def is_production() -> bool:
    return getattr(settings, "ENVIRONMENT", "development") == "production"


def status_for(result: ServiceResult) -> int:
    """Explicit status first (remote failures), then the error code, then 400."""
    if result.status_code:
        return result.status_code
    return ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST)


def public_message(result: ServiceResult, status_code: int) -> str:
    unexpected = result.error in (ErrorCodes.INTERNAL_ERROR, ErrorCodes.DATABASE_ERROR)
    if unexpected and status_code >= 500 and is_production():
        return GENERIC_ERROR_MESSAGE
    return result.error_detail or GENERIC_ERROR_MESSAGE


def envelope(typename: str, status_code: int, success: bool, message: str, **extra) -> dict:
    payload = {"typename": typename, "status_code": status_code, "success": success, "message": message}
    payload.update(extra)
    return payload


def base_response(message: str, status_code: int = status.HTTP_200_OK) -> Response:
    data = BaseResponseSerializer(envelope(TYPENAME_BASE, status_code, True, message)).data
    return Response(data, status=status_code)


def error_response(result: ServiceResult) -> Response:
    """
    Render a failed ServiceResult.

    Failures carrying field errors, and unexpected failures, are
    ``ErrorResponse``; business rule failures are ``BaseResponse``.
    """
    status_code = status_for(result)
    message = public_message(result, status_code)
    if result.errors or status_code >= 500:
        typename = TYPENAME_ERROR
    else:
        typename = TYPENAME_BASE

    if status_code >= 500:
        logger.error(f"Request failed with {status_code} ({result.error}): {result.error_detail}")

    data = ErrorResponseSerializer(
        envelope(typename, status_code, False, message, errors=result.errors or [])
    ).data
    return Response(data, status=status_code)


def validation_error_response(serializer_errors) -> Response:
    """Turn DRF serializer errors into an ErrorResponse with field errors."""
    errors = []
    for field_name, messages in serializer_errors.items():
        if isinstance(messages, dict):
            messages = [f"{key}: {value}" for key, value in messages.items()]
        for message in messages if isinstance(messages, list) else [messages]:
            errors.append({"field": field_name, "message": str(message)})
    data = ErrorResponseSerializer(
        envelope(TYPENAME_ERROR, status.HTTP_400_BAD_REQUEST, False, "Validation failed", errors=errors)
    ).data
    return Response(data, status=status.HTTP_400_BAD_REQUEST)


def bearer_token(request):
    """Raw bearer token of the request, forwarded to remote services."""
    authorization = request.META.get("HTTP_AUTHORIZATION", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None
