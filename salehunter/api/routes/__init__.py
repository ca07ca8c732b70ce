"""
API route handlers.
"""

from . import auth, pages, products, stores, users

__all__ = ["auth", "pages", "products", "stores", "users"]
