from .soft_delete import SoftDeleteManager, SoftDeleteModel, SoftDeleteQuerySet


__all__ = [
    "SoftDeleteManager",
    "SoftDeleteModel",
    "SoftDeleteQuerySet",
]
