"""
CouponService - Coupon Management

Store-manager CRUD for coupons. Field shapes are validated by the API
serializers; this service enforces the rules that need the database or span
several fields (unique code, referenced products and categories exist, spend
bounds and discount value consistent).
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction

from commerce.catalog.domain.models.catalog import Category, Product
from commerce.coupons.domain.models.coupon import Coupon
from commerce.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from commerce.services.money import HUNDRED, to_decimal

User = get_user_model()
logger = logging.getLogger(__name__)

SCOPE_FIELDS = {
    "applicable_products": Product,
    "excluded_products": Product,
    "applicable_categories": Category,
    "excluded_categories": Category,
}

SCOPE_INPUT_NAMES = {
    "applicable_products": "applicableProducts",
    "excluded_products": "excludedProducts",
    "applicable_categories": "applicableCategories",
    "excluded_categories": "excludedCategories",
}

SCALAR_FIELDS = (
    "code",
    "description",
    "discount_type",
    "discount_value",
    "free_shipping",
    "expiry_date",
    "max_usage",
    "minimum_spend",
    "maximum_spend",
    "allowed_emails",
)


def validate_coupon_rules(values: Dict[str, Any]) -> List[Dict[str, str]]:
    """Cross-field checks on the merged coupon values."""
    errors = []
    discount_type = values.get("discount_type")
    value = to_decimal(values.get("discount_value"))

    if discount_type is not None:
        if value <= 0:
            errors.append({"field": "discountValue", "message": "Discount value must be greater than 0"})
        elif discount_type == Coupon.PERCENTAGE_DISCOUNT and value > HUNDRED:
            errors.append({"field": "discountValue", "message": "Percentage discount cannot exceed 100"})
    elif not values.get("free_shipping"):
        errors.append(
            {"field": "discountType", "message": "A coupon needs a discount type or must grant free shipping"}
        )

    minimum = values.get("minimum_spend")
    maximum = values.get("maximum_spend")
    if minimum is not None and maximum is not None and Decimal(minimum) > Decimal(maximum):
        errors.append({"field": "minimumSpend", "message": "Minimum spend cannot exceed maximum spend"})

    max_usage = values.get("max_usage")
    if max_usage is not None and max_usage < values.get("usage_count", 0):
        errors.append({"field": "maxUsage", "message": "Maximum usage cannot be below the current usage count"})
    return errors


class CouponService(BaseService):
    """
    Service for coupon CRUD.

    Responsibilities:
    - List / get coupons
    - Create / update coupons with validation
    - Soft delete coupons
    """

    @BaseService.log_performance
    def list_coupons(self, search: Optional[str] = None) -> ServiceResult[List[Coupon]]:
        try:
            queryset = Coupon.objects.all()
            if search:
                queryset = queryset.filter(code__icontains=search.strip())
            return service_ok(list(queryset))
        except Exception as e:
            self.logger.error(f"Error listing coupons: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def get_coupon(self, coupon_id) -> ServiceResult[Coupon]:
        try:
            coupon = Coupon.objects.filter(id=coupon_id).first()
            if coupon is None:
                return service_err(ErrorCodes.COUPON_NOT_FOUND, f"Coupon {coupon_id} not found")
            return service_ok(coupon)
        except Exception as e:
            self.logger.error(f"Error getting coupon {coupon_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def create_coupon(self, data: Dict[str, Any], user: User) -> ServiceResult[Coupon]:
        """
        Create a coupon.

        Args:
            data: Coupon fields; scope fields are lists of ids
            user: Store manager creating the coupon

        Returns:
            ServiceResult with the created Coupon

        Example:
            >>> result = coupon_service.create_coupon(
            ...     data={"code": "save10", "discount_type": "PERCENTAGE_DISCOUNT", "discount_value": "10"},
            ...     user=manager,
            ... )
            >>> result.value.code
            'SAVE10'
        """
        try:
            values = {name: data[name] for name in SCALAR_FIELDS if name in data}
            values.setdefault("discount_value", Decimal("0"))
            if not values.get("code") or not str(values["code"]).strip():
                return service_err(
                    ErrorCodes.VALIDATION_ERROR,
                    "Validation failed",
                    errors=[{"field": "code", "message": "Code is required"}],
                )

            errors = validate_coupon_rules(values)
            if errors:
                return service_err(ErrorCodes.VALIDATION_ERROR, "Validation failed", errors=errors)

            code = Coupon.normalize_code(values["code"])
            if Coupon.all_objects.filter(code=code).exists():
                return service_err(ErrorCodes.DUPLICATE_COUPON_CODE, f"Coupon code {code} already exists")

            scope_result = self._load_scope(data)
            if not scope_result.ok:
                return scope_result

            coupon = Coupon.objects.create(created_by=user, **values)
            for field_name, objects in scope_result.value.items():
                getattr(coupon, field_name).set(objects)

            self.logger.info(f"Created coupon {coupon.code} (id={coupon.id}) by user {user.id}")
            return service_ok(coupon)

        except Exception as e:
            self.logger.error(f"Error creating coupon: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    @transaction.atomic
    def update_coupon(self, coupon_id, data: Dict[str, Any], user: User) -> ServiceResult[Coupon]:
        """
        Update a coupon (partial).

        Args:
            coupon_id: Coupon UUID
            data: Fields to change; scope fields replace the current lists
            user: Store manager

        Returns:
            ServiceResult with the updated Coupon
        """
        try:
            coupon = Coupon.objects.select_for_update().filter(id=coupon_id).first()
            if coupon is None:
                return service_err(ErrorCodes.COUPON_NOT_FOUND, f"Coupon {coupon_id} not found")

            changes = {name: data[name] for name in SCALAR_FIELDS if name in data}
            merged = {name: getattr(coupon, name) for name in SCALAR_FIELDS}
            merged["usage_count"] = coupon.usage_count
            merged.update(changes)

            errors = validate_coupon_rules(merged)
            if errors:
                return service_err(ErrorCodes.VALIDATION_ERROR, "Validation failed", errors=errors)

            if "code" in changes:
                code = Coupon.normalize_code(changes["code"])
                if Coupon.all_objects.filter(code=code).exclude(id=coupon.id).exists():
                    return service_err(ErrorCodes.DUPLICATE_COUPON_CODE, f"Coupon code {code} already exists")

            scope_result = self._load_scope(data)
            if not scope_result.ok:
                return scope_result

            for field_name, value in changes.items():
                setattr(coupon, field_name, value)
            coupon.save()
            for field_name, objects in scope_result.value.items():
                getattr(coupon, field_name).set(objects)

            self.logger.info(f"Updated coupon {coupon.code} by user {user.id}: {sorted(changes)}")
            return service_ok(coupon)

        except Exception as e:
            self.logger.error(f"Error updating coupon {coupon_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    @BaseService.log_performance
    def delete_coupon(self, coupon_id, user: User) -> ServiceResult[bool]:
        """
        Soft delete a coupon. Carts holding it stop applying it.

        Returns:
            ServiceResult with True if deleted
        """
        try:
            coupon = Coupon.objects.filter(id=coupon_id).first()
            if coupon is None:
                return service_err(ErrorCodes.COUPON_NOT_FOUND, f"Coupon {coupon_id} not found")

            coupon.soft_delete()
            self.logger.info(f"Deleted coupon {coupon.code} by user {user.id}")
            return service_ok(True)

        except Exception as e:
            self.logger.error(f"Error deleting coupon {coupon_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.INTERNAL_ERROR, str(e))

    def _load_scope(self, data: Dict[str, Any]) -> ServiceResult[Dict[str, list]]:
        scope = {}
        for field_name, model in SCOPE_FIELDS.items():
            if field_name not in data:
                continue
            ids = list(dict.fromkeys(str(value) for value in (data[field_name] or [])))
            objects = list(model.objects.filter(id__in=ids))
            if len(objects) != len(ids):
                found = {str(obj.id) for obj in objects}
                missing = [value for value in ids if value not in found]
                return service_err(
                    ErrorCodes.INVALID_INPUT,
                    f"{model.__name__} not found: {', '.join(missing)}",
                    errors=[
                        {"field": SCOPE_INPUT_NAMES[field_name], "message": f"Unknown ids: {', '.join(missing)}"}
                    ],
                )
            scope[field_name] = objects
        return service_ok(scope)
