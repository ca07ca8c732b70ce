"""
Storage Module for SaleHunter

Relational persistence for the marketplace:
- SQLAlchemy models (users, stores, products and their satellites)
- Async repositories per aggregate
- Unit of Work grouping repositories around one transaction
- Haversine distance helpers for proximity search
"""

from salehunter.storage.models import (
    Base,
    Product,
    ProductImage,
    ProductPrice,
    ProductRating,
    ProductView,
    SignInMethod,
    Store,
    User,
    UserFavorite,
)
from salehunter.storage.repository import Repository
from salehunter.storage.user_repository import UserRepository
from salehunter.storage.store_repository import StoreRepository
from salehunter.storage.product_repository import (
    ProductRatingRepository,
    ProductRepository,
)
from salehunter.storage.unit_of_work import UnitOfWork
from salehunter.storage.geo import haversine_km, within_radius

__all__ = [
    # Models
    "Base",
    "User",
    "Store",
    "Product",
    "ProductImage",
    "ProductPrice",
    "ProductRating",
    "UserFavorite",
    "ProductView",
    "SignInMethod",
    # Repositories
    "Repository",
    "UserRepository",
    "StoreRepository",
    "ProductRepository",
    "ProductRatingRepository",
    "UnitOfWork",
    # Geo
    "haversine_km",
    "within_radius",
]
