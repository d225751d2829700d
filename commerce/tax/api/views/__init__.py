from .tax_options_views import TaxOptionsView

__all__ = ["TaxOptionsView"]
