from .tax import TaxClass, TaxOptions, TaxRate


__all__ = [
    "TaxClass",
    "TaxOptions",
    "TaxRate",
]
