from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from commerce.api.responses import base_response, envelope, error_response, validation_error_response
from commerce.api.serializers import BaseResponseSerializer, ErrorResponseSerializer
from commerce.coupons.api.serializers.coupon_serializers import (
    CouponListResponseSerializer,
    CouponResponseSerializer,
    CouponWriteSerializer,
)
from commerce.coupons.domain.services import CouponService
from commerce.permissions import HasEntityPermission
from infrastructure.container import container


def coupon_response(coupon, message: str, status_code: int = status.HTTP_200_OK) -> Response:
    data = CouponResponseSerializer(envelope("CouponResponse", status_code, True, message, coupon=coupon)).data
    return Response(data, status=status_code)


class CouponViewSet(viewsets.ViewSet):
    """Store-manager coupon management."""

    permission_classes = [HasEntityPermission]
    permission_entity = "coupon"
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_service(self) -> CouponService:
        return container.coupon_service()

    @extend_schema(
        operation_id="coupons_list",
        summary="List coupons",
        parameters=[OpenApiParameter("search", str, description="Filter by code (contains)")],
        responses={
            200: OpenApiResponse(response=CouponListResponseSerializer, description="Coupons fetched"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a store manager"),
        },
        tags=["Commerce - Coupons"],
    )
    def list(self, request):
        result = self.get_service().list_coupons(search=request.query_params.get("search"))
        if not result.ok:
            return error_response(result)

        data = CouponListResponseSerializer(
            envelope("CouponsResponse", status.HTTP_200_OK, True, "Coupons fetched successfully", coupons=result.value)
        ).data
        return Response(data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="coupons_retrieve",
        summary="Get a coupon",
        responses={
            200: OpenApiResponse(response=CouponResponseSerializer, description="Coupon fetched"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Coupon not found"),
        },
        tags=["Commerce - Coupons"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_coupon(pk)
        if not result.ok:
            return error_response(result)
        return coupon_response(result.value, "Coupon fetched successfully")

    @extend_schema(
        operation_id="coupons_create",
        summary="Create a coupon",
        description="""
        **What it receives:**
        - `code` (string): unique, case-insensitive
        - `discountType` (PERCENTAGE_DISCOUNT | FIXED_CART_DISCOUNT | FIXED_PRODUCT_DISCOUNT, optional)
        - `discountValue` (decimal): percentage (max 100) or amount
        - `freeShipping`, `expiryDate`, `maxUsage`, `minimumSpend`, `maximumSpend`, `allowedEmails`
        - `applicableProducts`, `excludedProducts`, `applicableCategories`, `excludedCategories` (UUID lists)
        """,
        request=CouponWriteSerializer,
        responses={
            201: OpenApiResponse(response=CouponResponseSerializer, description="Coupon created"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Validation failed or duplicate code"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not a store manager"),
        },
        tags=["Commerce - Coupons"],
    )
    def create(self, request):
        input_serializer = CouponWriteSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)

        result = self.get_service().create_coupon(input_serializer.to_service_data(), request.user)
        if not result.ok:
            return error_response(result)
        return coupon_response(result.value, "Coupon created successfully", status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="coupons_update",
        summary="Update a coupon",
        request=CouponWriteSerializer,
        responses={
            200: OpenApiResponse(response=CouponResponseSerializer, description="Coupon updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Validation failed or duplicate code"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Coupon not found"),
        },
        tags=["Commerce - Coupons"],
    )
    def update(self, request, pk=None):
        return self._update(request, pk, partial=False)

    @extend_schema(
        operation_id="coupons_partial_update",
        summary="Partially update a coupon",
        request=CouponWriteSerializer,
        responses={
            200: OpenApiResponse(response=CouponResponseSerializer, description="Coupon updated"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Validation failed or duplicate code"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Coupon not found"),
        },
        tags=["Commerce - Coupons"],
    )
    def partial_update(self, request, pk=None):
        return self._update(request, pk, partial=True)

    def _update(self, request, pk, partial):
        input_serializer = CouponWriteSerializer(data=request.data, partial=partial)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)

        result = self.get_service().update_coupon(pk, input_serializer.to_service_data(), request.user)
        if not result.ok:
            return error_response(result)
        return coupon_response(result.value, "Coupon updated successfully")

    @extend_schema(
        operation_id="coupons_destroy",
        summary="Delete a coupon",
        responses={
            200: OpenApiResponse(response=BaseResponseSerializer, description="Coupon deleted"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Coupon not found"),
        },
        tags=["Commerce - Coupons"],
    )
    def destroy(self, request, pk=None):
        result = self.get_service().delete_coupon(pk, request.user)
        if not result.ok:
            return error_response(result)
        return base_response("Coupon deleted successfully")
