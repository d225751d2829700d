from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from commerce.api.responses import envelope, error_response, validation_error_response
from commerce.api.serializers import ErrorResponseSerializer
from commerce.permissions import HasEntityPermission
from commerce.tax.api.serializers.tax_serializers import TaxOptionsResponseSerializer, TaxOptionsUpdateSerializer
from commerce.tax.domain.services import TaxService
from infrastructure.container import container
from utils import rbac


def tax_options_response(options, message: str) -> Response:
    data = TaxOptionsResponseSerializer(
        envelope("TaxOptionsResponse", status.HTTP_200_OK, True, message, tax_options=options)
    ).data
    return Response(data, status=status.HTTP_200_OK)


class TaxOptionsView(APIView):
    permission_classes = [HasEntityPermission]
    permission_entity = "tax_options"
    permission_actions = {"get": rbac.ACTION_READ, "put": rbac.ACTION_UPDATE}

    def get_service(self) -> TaxService:
        return container.tax_service()

    @extend_schema(
        operation_id="tax_options_get",
        summary="Get the store tax options",
        responses={
            200: OpenApiResponse(response=TaxOptionsResponseSerializer, description="Tax options fetched"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a store manager"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Tax options not configured"),
        },
        tags=["Commerce - Tax"],
    )
    def get(self, request):
        result = self.get_service().fetch_tax_options()
        if not result.ok:
            return error_response(result)
        return tax_options_response(result.value, "Tax options fetched successfully")

    @extend_schema(
        operation_id="tax_options_update",
        summary="Create or update the store tax options",
        description="""
        **What it receives:**
        - `pricesEnteredWithTax` (bool): catalog prices already include tax
        - `calculateTaxBasedOn` (SHIPPING_ADDRESS | BILLING_ADDRESS | STORE_ADDRESS)
        - `shippingTaxClass` (UUID or null): tax class applied to shipping
        - display options

        Omitted fields keep their current value.
        """,
        request=TaxOptionsUpdateSerializer,
        responses={
            200: OpenApiResponse(response=TaxOptionsResponseSerializer, description="Tax options saved"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Validation failed"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a store manager"),
        },
        tags=["Commerce - Tax"],
    )
    def put(self, request):
        input_serializer = TaxOptionsUpdateSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)

        result = self.get_service().update_tax_options(**input_serializer.to_service_data())
        if not result.ok:
            return error_response(result)
        return tax_options_response(result.value, "Tax options updated successfully")
