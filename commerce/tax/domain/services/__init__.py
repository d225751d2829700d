from .tax_service import TaxService

__all__ = ["TaxService"]
