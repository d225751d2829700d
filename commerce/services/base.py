"""
Base classes and utilities for the service layer.

This module provides the ServiceResult pattern (inspired by Rust's Result type)
and BaseService class for all commerce services.
"""

import logging
import time
from dataclasses import dataclass, field
from functools import wraps
from typing import Callable, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Expected failures (a missing cart, an expired coupon, an address that is
    required for tax calculation) are returned as values instead of raised.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code from ErrorCodes (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)
        errors: Optional field-level errors, each {"field": ..., "message": ...}
        status_code: Optional explicit HTTP status, used when a remote
            collaborator already decided the status of a failure

    Examples:
        >>> result = service_ok(cart_totals)
        >>> if result.ok:
        ...     return Response({"cart": result.value}, 200)

        >>> result = service_err(ErrorCodes.CART_NOT_FOUND, "Cart not found.")
        >>> print(result.error)  # "cart_not_found"
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None
    errors: List[Dict[str, str]] = field(default_factory=list)
    status_code: Optional[int] = None


def service_ok(value: T) -> ServiceResult[T]:
    """
    Create a successful ServiceResult.

    Args:
        value: The success value

    Returns:
        ServiceResult with ok=True and the value
    """
    return ServiceResult(ok=True, value=value)


def service_err(
    error: str,
    error_detail: str = "",
    errors: Optional[List[Dict[str, str]]] = None,
    status_code: Optional[int] = None,
) -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "cart_not_found", "coupon_expired")
        error_detail: Human-readable error message
        errors: Field-level validation errors
        status_code: Explicit HTTP status overriding the error code mapping

    Returns:
        ServiceResult with ok=False and error information

    Example:
        >>> return service_err(ErrorCodes.COUPON_EXPIRED, f"Coupon {code} has expired.")
    """
    return ServiceResult(
        ok=False,
        error=error,
        error_detail=error_detail or error,
        errors=list(errors or []),
        status_code=status_code,
    )


class BaseService:
    """
    Base class for all services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator

    Usage:
        class CouponService(BaseService):
            def __init__(self, evaluator):
                super().__init__()
                self.evaluator = evaluator

            @BaseService.log_performance
            def list_coupons(self):
                self.logger.info("Listing coupons")
                # ... implementation
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time and any errors that occur.

        Args:
            func: The service method to wrap

        Returns:
            Wrapped function with performance logging
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across commerce services."""

    # Auth errors
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"

    # Product errors
    PRODUCT_NOT_FOUND = "product_not_found"
    PRODUCT_UNAVAILABLE = "product_unavailable"
    INSUFFICIENT_STOCK = "insufficient_stock"

    # Cart errors
    CART_NOT_FOUND = "cart_not_found"
    CART_CONFLICT = "cart_conflict"
    INVALID_QUANTITY = "invalid_quantity"
    ITEM_NOT_IN_CART = "item_not_in_cart"

    # Coupon errors
    COUPON_NOT_FOUND = "coupon_not_found"
    COUPON_INVALID_CODES = "coupon_invalid_codes"
    COUPON_EMAIL_NOT_ALLOWED = "coupon_email_not_allowed"
    COUPON_EXPIRED = "coupon_expired"
    COUPON_NOT_APPLICABLE = "coupon_not_applicable"
    COUPON_EXCLUDED_ITEMS = "coupon_excluded_items"
    COUPON_USAGE_LIMIT_REACHED = "coupon_usage_limit_reached"
    COUPON_INVALID_VALUE = "coupon_invalid_value"
    COUPON_SPEND_NOT_MET = "coupon_spend_not_met"
    COUPON_NOT_APPLIED = "coupon_not_applied"
    DUPLICATE_COUPON_CODE = "duplicate_coupon_code"

    # Tax / address errors
    INVALID_ADDRESS_TYPE = "invalid_address_type"
    TAX_ADDRESS_REQUIRED = "tax_address_required"
    TAX_OPTIONS_NOT_FOUND = "tax_options_not_found"

    # Remote collaborator errors
    UPSTREAM_ERROR = "upstream_error"

    # Validation errors
    VALIDATION_ERROR = "validation_error"
    INVALID_INPUT = "invalid_input"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
    DATABASE_ERROR = "database_error"
