from .response_serializers import BaseResponseSerializer, ErrorResponseSerializer, FieldErrorSerializer

__all__ = [
    "BaseResponseSerializer",
    "ErrorResponseSerializer",
    "FieldErrorSerializer",
]
