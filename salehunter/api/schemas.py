"""
API Schemas for SaleHunter

Pydantic models for request validation and response serialization:
- Envelope
- Auth models
- User models
- Store models
- Product / rating / price-history models

Design Decisions:
1. Every response is wrapped in {code, message, data}
2. Update requests are sparse: only fields sent (and non-blank) change
3. Money and coordinates are Decimal and serialize as strings
4. Response models are built from ORM entities with from_*() helpers
"""

from datetime import datetime
from decimal import Decimal
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, model_validator
from sqlalchemy import inspect

from salehunter.storage.models import Product, ProductPrice, ProductRating, Store, User

T = TypeVar("T")


# =============================================================================
# Envelope
# =============================================================================

class ApiResponse(BaseModel, Generic[T]):
    """Uniform response envelope."""

    code: int
    message: str
    data: Optional[T] = None


class HealthResponse(BaseModel):
    status: str = "Healthy"
    timestamp: datetime


# =============================================================================
# Auth Schemas
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str
    phone_number: Optional[str] = Field(None, max_length=20)

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)
    confirm_new_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_new_password:
            raise ValueError("Passwords do not match")
        return self


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "ResetPasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


# =============================================================================
# User Schemas
# =============================================================================

class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    phone_number: Optional[str] = None
    profile_image_url: Optional[str] = None
    last_login_at: Optional[datetime] = None
    signed_in_with: int = 0
    role: str = "Customer"
    store_id: Optional[int] = None
    has_store: bool = False
    account_type: str = "User Account"
    is_active: bool = True
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone_number=user.phone_number,
            profile_image_url=user.profile_image_url,
            last_login_at=user.last_login_at,
            signed_in_with=user.signed_in_with,
            role=user.role,
            store_id=user.store_id,
            has_store=user.has_store(),
            account_type=user.account_type(),
            is_active=user.is_active,
            created_at=user.created_at,
        )


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=20)
    profile_image_base64: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: datetime
    user: UserResponse


class RefreshResponse(BaseModel):
    access_token: str
    expires_at: datetime


# =============================================================================
# Product Schemas
# =============================================================================

class CreateProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    name_arabic: Optional[str] = Field(None, max_length=200)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    sale_percent: int = Field(0, ge=0, le=100)
    brand: Optional[str] = Field(None, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    category_arabic: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    description_arabic: Optional[str] = Field(None, max_length=2000)
    source_url: Optional[str] = Field(None, max_length=500)
    images: list[str] = Field(default_factory=list, max_length=10)


class UpdateProductRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    name_arabic: Optional[str] = Field(None, max_length=200)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    sale_percent: Optional[int] = Field(None, ge=0, le=100)
    brand: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    category_arabic: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    description_arabic: Optional[str] = Field(None, max_length=2000)
    source_url: Optional[str] = Field(None, max_length=500)
    new_images: list[str] = Field(default_factory=list, max_length=10)


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ProductResponse(BaseModel):
    id: int
    name: str
    name_arabic: Optional[str] = None
    current_price: Decimal
    sale_percent: int = 0
    final_price: Decimal
    brand: Optional[str] = None
    category: str
    category_arabic: Optional[str] = None
    description: Optional[str] = None
    description_arabic: Optional[str] = None
    source_url: Optional[str] = None
    images: list[str] = Field(default_factory=list)
    main_image: Optional[str] = None
    average_rating: float = 0.0
    rating_count: int = 0
    store_id: int
    store_name: Optional[str] = None
    store_logo_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        """Requires store, images and ratings to be loaded."""
        images = [image.image_url for image in product.images]
        return cls(
            id=product.id,
            name=product.name,
            name_arabic=product.name_arabic,
            current_price=product.price,
            sale_percent=product.sale_percent,
            final_price=product.final_price,
            brand=product.brand,
            category=product.category,
            category_arabic=product.category_arabic,
            description=product.description,
            description_arabic=product.description_arabic,
            source_url=product.source_url,
            images=images,
            main_image=images[0] if images else None,
            average_rating=product.average_rating(),
            rating_count=product.rating_count(),
            store_id=product.store_id,
            store_name=product.store.name if product.store else None,
            store_logo_url=product.store.logo_url if product.store else None,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class RatingResponse(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    product_id: int
    user_id: int
    user_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_rating(cls, rating: ProductRating) -> "RatingResponse":
        return cls(
            id=rating.id,
            rating=rating.rating,
            comment=rating.comment,
            product_id=rating.product_id,
            user_id=rating.user_id,
            user_name=rating.user.name if rating.user else None,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
        )


class PriceHistoryEntry(BaseModel):
    price: Decimal
    created_at: datetime

    @classmethod
    def from_price(cls, price: ProductPrice) -> "PriceHistoryEntry":
        return cls(price=price.price, created_at=price.created_at)


# =============================================================================
# Store Schemas
# =============================================================================

class CreateStoreRequest(BaseModel):
    # Blank name/address is reported by the service, not rejected here
    name: str = Field("", max_length=200)
    address: str = Field("", max_length=500)
    type: Literal["local", "online"] = "local"
    category: str = Field("", max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    phone: Optional[str] = Field(None, max_length=20)
    logo_base64: Optional[str] = None
    whatsapp_phone: Optional[str] = Field(None, max_length=20)
    facebook_url: Optional[str] = Field(None, max_length=200)
    instagram_url: Optional[str] = Field(None, max_length=200)
    website_url: Optional[str] = Field(None, max_length=200)
    latitude: Optional[Decimal] = Field(None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(None, ge=-180, le=180)


class UpdateStoreRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    type: Optional[Literal["local", "online"]] = None
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    phone: Optional[str] = Field(None, max_length=20)
    logo_base64: Optional[str] = None
    whatsapp_phone: Optional[str] = Field(None, max_length=20)
    facebook_url: Optional[str] = Field(None, max_length=200)
    instagram_url: Optional[str] = Field(None, max_length=200)
    website_url: Optional[str] = Field(None, max_length=200)


class StoreResponse(BaseModel):
    id: int
    name: str
    type: str
    logo_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    category: str = ""
    description: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    whatsapp_phone: Optional[str] = None
    facebook_url: Optional[str] = None
    instagram_url: Optional[str] = None
    website_url: Optional[str] = None
    user_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    products: Optional[list[ProductResponse]] = None

    @classmethod
    def from_store(cls, store: Store) -> "StoreResponse":
        """Products are included only when they were loaded with the store."""
        products = None
        if "products" not in inspect(store).unloaded:
            products = [ProductResponse.from_product(p) for p in store.products]

        return cls(
            id=store.id,
            name=store.name,
            type=store.type,
            logo_url=store.logo_url,
            phone=store.phone,
            address=store.address,
            category=store.category,
            description=store.description,
            latitude=store.latitude,
            longitude=store.longitude,
            whatsapp_phone=store.whatsapp_phone,
            facebook_url=store.facebook_url,
            instagram_url=store.instagram_url,
            website_url=store.website_url,
            user_id=store.user_id,
            created_at=store.created_at,
            updated_at=store.updated_at,
            products=products,
        )
