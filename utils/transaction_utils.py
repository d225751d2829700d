"""
Transaction Utilities for the Commerce Backend
==============================================

Deadlock-aware helpers around ``django.db.transaction``.

Usage Examples:
    # Retry a short write transaction when the database picks it as a deadlock victim
    @retry_on_deadlock(max_retries=2)
    def attach_coupons(cart, coupons):
        with transaction.atomic():
            ...

    # Logged unit of work
    with rollback_safe_operation("Apply coupons"):
        ...
"""

import logging
import time
from contextlib import contextmanager
from functools import wraps

from django.db import OperationalError

logger = logging.getLogger(__name__)

# MySQL 1213 / 1205, SQLite busy database
DEADLOCK_MARKERS = ("Deadlock found", "1213", "Lock wait timeout", "1205", "database is locked")


class TransactionError(Exception):
    """Custom exception for transaction-related errors"""

    pass


class DeadlockError(TransactionError):
    """Exception raised when a deadlock is detected"""

    pass


def is_deadlock(error: Exception) -> bool:
    message = str(error)
    return any(marker in message for marker in DEADLOCK_MARKERS)


def retry_on_deadlock(max_retries=3, delay=0.1, backoff=2.0):
    """
    Decorator to retry operations on deadlock with exponential backoff.

    Args:
        max_retries (int): Maximum number of retry attempts
        delay (float): Initial delay between retries in seconds
        backoff (float): Backoff multiplier for delay
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except OperationalError as e:
                    if not is_deadlock(e):
                        raise TransactionError(f"Database operation failed: {e}")
                    last_exception = DeadlockError(f"Deadlock detected: {e}")
                    if attempt < max_retries:
                        logger.warning(
                            f"Deadlock detected, retrying in {current_delay}s (attempt {attempt + 1}/{max_retries})"
                        )
                        time.sleep(current_delay)
                        current_delay *= backoff

            # If we get here, we've exhausted all retries
            raise last_exception

        return wrapper

    return decorator


@contextmanager
def rollback_safe_operation(operation_name="Unknown"):
    """
    Context manager that logs the outcome and duration of a unit of work.

    Args:
        operation_name (str): Name of the operation for logging

    Usage:
        with rollback_safe_operation("Clear cart"):
            cart.items.all().delete()
    """
    start_time = time.time()
    logger.debug(f"Starting rollback-safe operation: {operation_name}")

    try:
        yield
        elapsed = time.time() - start_time
        logger.info(f"Operation '{operation_name}' completed successfully in {elapsed:.3f}s")
    except Exception as e:
        elapsed = time.time() - start_time
        logger.error(f"Operation '{operation_name}' failed after {elapsed:.3f}s: {e}")
        raise
