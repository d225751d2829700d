from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from commerce.api.responses import (
    base_response,
    bearer_token,
    envelope,
    error_response,
    validation_error_response,
)
from commerce.api.serializers import BaseResponseSerializer, ErrorResponseSerializer
from commerce.cart.api.serializers.cart_serializers import (
    ApplyCouponRequestSerializer,
    CartItemRemoveRequestSerializer,
    CartItemRequestSerializer,
    CartItemUpdateRequestSerializer,
    CartQuerySerializer,
    CartResponseSerializer,
    RemoveCouponRequestSerializer,
)
from commerce.cart.domain.services import CartService
from commerce.permissions import HasEntityPermission
from infrastructure.container import container
from utils import rbac

ADDRESS_PARAMETERS = [
    OpenApiParameter("shippingAddressId", str, description="Address book entry used for shipping"),
    OpenApiParameter("billingAddressId", str, description="Address book entry used for billing"),
]


def cart_response(totals, message: str) -> Response:
    data = CartResponseSerializer(
        envelope("CartResponse", status.HTTP_200_OK, True, message, cart=totals)
    ).data
    return Response(data, status=status.HTTP_200_OK)


class CartViewSet(viewsets.ViewSet):
    permission_classes = [HasEntityPermission]
    permission_entity = "cart"
    permission_actions = {
        "apply_coupon": rbac.ACTION_UPDATE,
        "remove_coupon": rbac.ACTION_UPDATE,
        "add_item": rbac.ACTION_CREATE,
        "update_item": rbac.ACTION_UPDATE,
        "remove_item": rbac.ACTION_DELETE,
        "clear": rbac.ACTION_DELETE,
    }

    def get_service(self) -> CartService:
        # Inject CartService via DI container
        return container.cart_service()

    @extend_schema(
        operation_id="cart_get",
        summary="Get user's shopping cart",
        description="""
        **What it receives:**
        - Authentication token (header)
        - `shippingAddressId`, `billingAddressId` (query, optional): address book entries

        **What it returns:**
        - Cart lines with unit price, discount and tax
        - Totals (subtotal, discount, product tax, shipping, grand total)
        - Applied coupons
        """,
        parameters=ADDRESS_PARAMETERS,
        responses={
            200: OpenApiResponse(response=CartResponseSerializer, description="Cart fetched successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid or missing address"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Cart not found"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Commerce - Cart"],
    )
    def list(self, request):
        query = CartQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return validation_error_response(query.errors)

        result = self.get_service().get_cart(
            request.user,
            bearer_token(request),
            shipping_address_id=query.validated_data.get("shippingAddressId") or None,
            billing_address_id=query.validated_data.get("billingAddressId") or None,
        )
        if not result.ok:
            return error_response(result)

        return cart_response(result.value, "Cart fetched successfully.")

    @extend_schema(
        operation_id="cart_apply_coupon",
        summary="Apply coupons to the cart",
        description="""
        **What it receives:**
        - `couponCodes` (list of strings): codes to apply
        - `shippingAddressId`, `billingAddressId` (optional): address book entries

        **What it returns:**
        - The recalculated cart

        Every coupon is validated before anything is saved; the first invalid
        coupon aborts the request. Re-applying an applied coupon is a no-op.
        """,
        request=ApplyCouponRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartResponseSerializer, description="Coupons applied successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid or inapplicable coupon"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Coupon not allowed for this email"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Cart not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Concurrent cart update"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Commerce - Cart"],
    )
    @action(detail=False, methods=["post"], url_path="apply-coupon")
    def apply_coupon(self, request):
        input_serializer = ApplyCouponRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)
        data = input_serializer.validated_data

        result = self.get_service().apply_coupon(
            request.user,
            data["couponCodes"],
            bearer_token(request),
            shipping_address_id=data.get("shippingAddressId") or None,
            billing_address_id=data.get("billingAddressId") or None,
        )
        if not result.ok:
            return error_response(result)

        return cart_response(result.value, "Coupons applied successfully")

    @extend_schema(
        operation_id="cart_remove_coupon",
        summary="Remove a coupon from the cart",
        request=RemoveCouponRequestSerializer,
        responses={
            200: OpenApiResponse(response=BaseResponseSerializer, description="Coupon removed"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Coupon not applied"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Cart not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Concurrent cart update"),
        },
        tags=["Commerce - Cart"],
    )
    @action(detail=False, methods=["post"], url_path="remove-coupon")
    def remove_coupon(self, request):
        input_serializer = RemoveCouponRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)

        result = self.get_service().remove_coupon(request.user, input_serializer.validated_data["couponCode"])
        if not result.ok:
            return error_response(result)

        return base_response("Coupon removed successfully")

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add item to cart",
        description="""
        **What it receives:**
        - `productId` (UUID): Product to add
        - `variationId` (UUID, optional): Product variation
        - `quantity` (integer, optional): Quantity to add (default: 1)

        Creates the cart on first use; adding a line already in the cart adds
        to its quantity.
        """,
        request=CartItemRequestSerializer,
        responses={
            200: OpenApiResponse(response=BaseResponseSerializer, description="Item added successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid quantity or stock"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Concurrent cart update"),
        },
        tags=["Commerce - Cart"],
    )
    @action(detail=False, methods=["post"], url_path="add-item")
    def add_item(self, request):
        input_serializer = CartItemRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)
        data = input_serializer.validated_data

        result = self.get_service().add_to_cart(
            request.user, data["productId"], data["quantity"], variation_id=data.get("variationId")
        )
        if not result.ok:
            return error_response(result)

        return base_response("Item added to cart successfully")

    @extend_schema(
        operation_id="cart_update_item",
        summary="Update item quantity in cart",
        request=CartItemUpdateRequestSerializer,
        responses={
            200: OpenApiResponse(response=BaseResponseSerializer, description="Item updated successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid quantity or stock"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Concurrent cart update"),
        },
        tags=["Commerce - Cart"],
    )
    @action(detail=False, methods=["patch"], url_path="update-item")
    def update_item(self, request):
        input_serializer = CartItemUpdateRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)
        data = input_serializer.validated_data

        result = self.get_service().update_cart_item(
            request.user, data["productId"], data["quantity"], variation_id=data.get("variationId")
        )
        if not result.ok:
            return error_response(result)

        return base_response("Cart item updated successfully")

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove item from cart",
        request=CartItemRemoveRequestSerializer,
        responses={
            200: OpenApiResponse(response=BaseResponseSerializer, description="Item removed successfully"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Concurrent cart update"),
        },
        tags=["Commerce - Cart"],
    )
    @action(detail=False, methods=["delete"], url_path="remove-item")
    def remove_item(self, request):
        input_serializer = CartItemRemoveRequestSerializer(data=request.data)
        if not input_serializer.is_valid():
            return validation_error_response(input_serializer.errors)
        data = input_serializer.validated_data

        result = self.get_service().remove_item_from_cart(
            request.user, data["productId"], variation_id=data.get("variationId")
        )
        if not result.ok:
            return error_response(result)

        return base_response("Item removed from cart successfully")

    @extend_schema(
        operation_id="cart_clear",
        summary="Clear all items and coupons from cart",
        responses={
            200: OpenApiResponse(response=BaseResponseSerializer, description="Cart cleared successfully"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Concurrent cart update"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Commerce - Cart"],
    )
    @action(detail=False, methods=["delete"])
    def clear(self, request):
        result = self.get_service().clear_cart(request.user)
        if not result.ok:
            return error_response(result)

        return base_response("Cart cleared successfully")
