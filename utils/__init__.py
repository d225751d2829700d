# Shared helpers for the commerce backend

from .logging_utils import mask_value
from .transaction_utils import DeadlockError, TransactionError, retry_on_deadlock, rollback_safe_operation

__all__ = ["DeadlockError", "TransactionError", "mask_value", "retry_on_deadlock", "rollback_safe_operation"]
