"""
Domain services for SaleHunter.

Each service is constructed per request around a UnitOfWork and returns
ServiceResult values for every expected outcome.
"""

from salehunter.services.result import ErrorKind, ResponseCodes, ServiceResult
from salehunter.services.context import RequestContext, present
from salehunter.services.auth_service import AuthResult, AuthService, RefreshResult
from salehunter.services.store_service import StoreService
from salehunter.services.product_service import ProductService
from salehunter.services.user_service import UserService

__all__ = [
    "ServiceResult",
    "ErrorKind",
    "ResponseCodes",
    "RequestContext",
    "present",
    "AuthService",
    "AuthResult",
    "RefreshResult",
    "StoreService",
    "ProductService",
    "UserService",
]
