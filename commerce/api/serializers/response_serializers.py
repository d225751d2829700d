"""
Response Serializers for the Commerce API

Every endpoint answers with the same discriminated envelope:

    {"__typename": "CartResponse" | "BaseResponse" | "ErrorResponse",
     "statusCode": 200, "success": true, "message": "...", ...}

The discriminant is declared as ``typename`` and rendered as ``__typename``.
"""

from rest_framework import serializers


class FieldErrorSerializer(serializers.Serializer):
    """Field-level validation error"""

    field = serializers.CharField(help_text="Offending input field")
    message = serializers.CharField(help_text="What is wrong with it")


class BaseResponseSerializer(serializers.Serializer):
    """Envelope without payload"""

    typename = serializers.CharField(help_text='Response variant, rendered as "__typename"')
    statusCode = serializers.IntegerField(source="status_code", help_text="HTTP-like status code")
    success = serializers.BooleanField(help_text="Whether the operation succeeded")
    message = serializers.CharField(help_text="Human-readable message")

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["__typename"] = data.pop("typename")
        return data


class ErrorResponseSerializer(BaseResponseSerializer):
    """Failure envelope with optional field errors"""

    errors = FieldErrorSerializer(many=True, required=False, help_text="Field-level errors")

