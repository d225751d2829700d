from .catalog import Category, Product, ProductPrice, ProductTieredPrice, ProductVariation


__all__ = [
    "Category",
    "Product",
    "ProductPrice",
    "ProductTieredPrice",
    "ProductVariation",
]
