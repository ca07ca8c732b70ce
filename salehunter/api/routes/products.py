"""
Product API Routes

Product CRUD, search and listings, favorites, view history, ratings and
price history.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from salehunter.api.dependencies import (
    get_current_context,
    get_optional_context,
    get_product_service,
)
from salehunter.api.responses import respond
from salehunter.api.schemas import (
    ApiResponse,
    CreateProductRequest,
    PriceHistoryEntry,
    ProductResponse,
    RatingRequest,
    RatingResponse,
    UpdateProductRequest,
)
from salehunter.services import ProductService, RequestContext

router = APIRouter(prefix="/products", tags=["products"])


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.post(
    "",
    response_model=ApiResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    body: CreateProductRequest,
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    """Create a product in the caller's store. Images that fail to upload are skipped."""
    fields = body.model_dump(exclude={"images"})
    result = await service.create_product(context.user_id, fields, body.images)
    return respond(result, ProductResponse.from_product)


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
async def update_product(
    product_id: int,
    body: UpdateProductRequest,
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    changes = body.model_dump(exclude_unset=True, exclude={"new_images"})
    result = await service.update_product(product_id, context.user_id, changes, body.new_images)
    return respond(result, ProductResponse.from_product)


@router.delete("/{product_id}", response_model=ApiResponse[bool])
async def delete_product(
    product_id: int,
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    return respond(await service.delete_product(product_id, context.user_id))


# =============================================================================
# Listings
# =============================================================================

@router.get("/search", response_model=ApiResponse[list[ProductResponse]])
async def search_products(
    query: Optional[str] = Query(None, max_length=200),
    store_id: Optional[int] = Query(None),
    category: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    service: ProductService = Depends(get_product_service),
):
    """Substring search over name, description and brand with optional filters."""
    result = await service.search_products(
        query=query,
        store_id=store_id,
        category=category,
        min_price=min_price,
        max_price=max_price,
    )
    return respond(result, ProductResponse.from_product)


@router.get("/on-sale", response_model=ApiResponse[list[ProductResponse]])
async def on_sale_products(service: ProductService = Depends(get_product_service)):
    # Most recent products; sale_percent is not filtered on
    return respond(await service.get_on_sale_products(), ProductResponse.from_product)


@router.get("/recommended", response_model=ApiResponse[list[ProductResponse]])
async def recommended_products(
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    result = await service.get_recommended_products(context.user_id)
    return respond(result, ProductResponse.from_product)


@router.get("/favorites", response_model=ApiResponse[list[ProductResponse]])
async def favorite_products(
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    result = await service.get_favorite_products(context.user_id)
    return respond(result, ProductResponse.from_product)


@router.get("/history", response_model=ApiResponse[list[ProductResponse]])
async def view_history(
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    """Distinct products the caller viewed, most recent first (max 50)."""
    result = await service.get_view_history(context.user_id)
    return respond(result, ProductResponse.from_product)


@router.get("/store/{store_id}", response_model=ApiResponse[list[ProductResponse]])
async def products_by_store(
    store_id: int,
    service: ProductService = Depends(get_product_service),
):
    result = await service.get_products_by_store(store_id)
    return respond(result, ProductResponse.from_product)


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(
    product_id: int,
    context: RequestContext = Depends(get_optional_context),
    service: ProductService = Depends(get_product_service),
):
    """Product details. Signed-in callers also get the view recorded."""
    response = respond(await service.get_product(product_id), ProductResponse.from_product)
    if context.is_authenticated:
        await service.add_product_view(context.user_id, product_id)
    return response


@router.get("/{product_id}/price-history", response_model=ApiResponse[list[PriceHistoryEntry]])
async def price_history(
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    """Price snapshots, oldest first."""
    result = await service.get_price_history(product_id)
    return respond(result, PriceHistoryEntry.from_price)


# =============================================================================
# Favorites
# =============================================================================

@router.post("/{product_id}/favorite", response_model=ApiResponse[bool])
async def add_favorite(
    product_id: int,
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    return respond(await service.add_to_favorites(context.user_id, product_id))


@router.delete("/{product_id}/favorite", response_model=ApiResponse[bool])
async def remove_favorite(
    product_id: int,
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    return respond(await service.remove_from_favorites(context.user_id, product_id))


# =============================================================================
# Ratings
# =============================================================================

@router.post("/{product_id}/rating", response_model=ApiResponse[bool])
async def rate_product(
    product_id: int,
    body: RatingRequest,
    context: RequestContext = Depends(get_current_context),
    service: ProductService = Depends(get_product_service),
):
    """Add the caller's rating or replace the one they already gave."""
    result = await service.add_rating(context.user_id, product_id, body.rating, body.comment)
    return respond(result)


@router.get("/{product_id}/ratings", response_model=ApiResponse[list[RatingResponse]])
async def product_ratings(
    product_id: int,
    service: ProductService = Depends(get_product_service),
):
    result = await service.get_product_ratings(product_id)
    return respond(result, RatingResponse.from_rating)
