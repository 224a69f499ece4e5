from .product_form import ProductForm

__all__ = ["ProductForm"]
