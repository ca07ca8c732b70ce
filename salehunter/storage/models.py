"""
Database models for SaleHunter.

Entities:
- User: account, credentials, refresh/reset token pairs
- Store: one per user, optional geo-coordinates
- Product: price, sale percent, localized text
- ProductImage / ProductPrice / ProductRating / UserFavorite / ProductView

Design Decisions:
1. Money is Numeric(10, 2) and handled as Decimal end to end
2. Cascades live in the database (ON DELETE CASCADE) with passive_deletes
3. users.store_id is a plain column kept in sync by the store service;
   stores.user_id (unique) is the real 1:1 enforcement
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY
Identity = BigInteger().with_variant(Integer, "sqlite")

CENTS = Decimal("0.01")


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable with values read back from the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Identity plus creation/update timestamps shared by every entity."""

    id = Column(Identity, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)


class SignInMethod:
    EMAIL = 0
    GOOGLE = 1
    FACEBOOK = 2


class User(TimestampMixin, Base):
    """User account."""
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(20))
    password_hash = Column(String(255), nullable=False)
    profile_image_url = Column(String(500))
    last_login_at = Column(DateTime)
    signed_in_with = Column(Integer, default=SignInMethod.EMAIL, nullable=False)
    role = Column(String(20), default="Customer", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    refresh_token = Column(String(64), index=True)
    refresh_token_expiry = Column(DateTime)

    password_reset_token = Column(String(64), index=True)
    password_reset_token_expiry = Column(DateTime)

    store_id = Column(BigInteger, nullable=True)

    store = relationship(
        "Store",
        back_populates="owner",
        uselist=False,
        lazy="raise",
    )

    def has_store(self) -> bool:
        return self.store_id is not None and self.store_id > 0

    def account_type(self) -> str:
        return "Seller Account" if self.has_store() else "User Account"


class Store(TimestampMixin, Base):
    """A seller's store. At most one per user."""
    __tablename__ = "stores"

    name = Column(String(200), nullable=False)
    type = Column(String(20), default="local", nullable=False)  # "local" | "online"
    logo_url = Column(String(500))
    phone = Column(String(20))
    address = Column(String(500))
    category = Column(String(100), nullable=False, default="")
    description = Column(String(1000))

    latitude = Column(Numeric(10, 8))
    longitude = Column(Numeric(11, 8))

    whatsapp_phone = Column(String(20))
    facebook_url = Column(String(200))
    instagram_url = Column(String(200))
    website_url = Column(String(200))

    user_id = Column(
        BigInteger,
        ForeignKey("users.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )

    owner = relationship("User", back_populates="store", lazy="raise")
    products = relationship(
        "Product",
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by="Product.created_at.desc()",
    )

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class Product(TimestampMixin, Base):
    """Product listed by a store."""
    __tablename__ = "products"

    name = Column(String(200), nullable=False)
    name_arabic = Column(String(200))
    price = Column(Numeric(10, 2), nullable=False)
    sale_percent = Column(Integer, default=0, nullable=False)
    brand = Column(String(100))
    category = Column(String(100), nullable=False)
    category_arabic = Column(String(100))
    description = Column(String(2000))
    description_arabic = Column(String(2000))
    source_url = Column(String(500))

    store_id = Column(
        BigInteger,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    store = relationship("Store", back_populates="products", lazy="raise")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductImage.display_order, ProductImage.id",
        lazy="raise",
    )
    price_history = relationship(
        "ProductPrice",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductPrice.created_at, ProductPrice.id",
        lazy="raise",
    )
    ratings = relationship(
        "ProductRating",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
    )

    __table_args__ = (
        CheckConstraint("sale_percent >= 0 AND sale_percent <= 100", name="ck_products_sale_percent"),
        Index("idx_products_created", "created_at"),
    )

    @property
    def final_price(self) -> Decimal:
        """Price after the sale discount, exact to the cent."""
        price = Decimal(self.price)
        percent = Decimal(self.sale_percent or 0)
        discounted = price * (Decimal(100) - percent) / Decimal(100)
        return discounted.quantize(CENTS, rounding=ROUND_HALF_UP)

    def average_rating(self) -> float:
        if not self.ratings:
            return 0.0
        return sum(r.rating for r in self.ratings) / len(self.ratings)

    def rating_count(self) -> int:
        return len(self.ratings)


class ProductImage(TimestampMixin, Base):
    __tablename__ = "product_images"

    image_url = Column(String(500), nullable=False)
    display_order = Column(Integer, default=0, nullable=False)
    product_id = Column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product = relationship("Product", back_populates="images", lazy="raise")


class ProductPrice(TimestampMixin, Base):
    """Append-only price history row."""
    __tablename__ = "product_prices"

    price = Column(Numeric(10, 2), nullable=False)
    product_id = Column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class ProductRating(TimestampMixin, Base):
    __tablename__ = "product_ratings"

    rating = Column(Integer, nullable=False)
    comment = Column(String(1000))
    product_id = Column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        BigInteger,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )

    product = relationship("Product", back_populates="ratings", lazy="raise")
    user = relationship("User", lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_product_ratings_user_product"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_product_ratings_range"),
    )


class UserFavorite(TimestampMixin, Base):
    __tablename__ = "user_favorites"

    user_id = Column(
        BigInteger,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    product_id = Column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    product = relationship("Product", lazy="raise")

    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_user_favorites_user_product"),
    )


class ProductView(TimestampMixin, Base):
    """Every view is logged; no uniqueness."""
    __tablename__ = "product_views"

    user_id = Column(
        BigInteger,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    product_id = Column(
        BigInteger,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    viewed_at = Column(DateTime, default=utcnow, nullable=False)

    product = relationship("Product", lazy="raise")
