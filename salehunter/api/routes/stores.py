"""
Store API Routes

CRUD for the caller's store plus public listing, text search and
proximity search.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from salehunter.api.dependencies import get_current_context, get_store_service
from salehunter.api.responses import respond
from salehunter.api.schemas import (
    ApiResponse,
    CreateStoreRequest,
    StoreResponse,
    UpdateStoreRequest,
)
from salehunter.errors import ValidationError
from salehunter.services import RequestContext, StoreService
from salehunter.services.store_service import DEFAULT_RADIUS_KM

router = APIRouter(prefix="/stores", tags=["stores"])


@router.post(
    "",
    response_model=ApiResponse[StoreResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_store(
    body: CreateStoreRequest,
    context: RequestContext = Depends(get_current_context),
    service: StoreService = Depends(get_store_service),
):
    """Create the caller's store (one per user)."""
    result = await service.create_store(context.user_id, body.model_dump())
    return respond(result, StoreResponse.from_store)


@router.get("", response_model=ApiResponse[list[StoreResponse]])
async def list_stores(service: StoreService = Depends(get_store_service)):
    return respond(await service.get_all_stores(), StoreResponse.from_store)


@router.get("/search", response_model=ApiResponse[list[StoreResponse]])
async def search_stores(
    query: Optional[str] = Query(None, max_length=200),
    latitude: Optional[Decimal] = Query(None, ge=-90, le=90),
    longitude: Optional[Decimal] = Query(None, ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    service: StoreService = Depends(get_store_service),
):
    """
    Text search on name, category and description.

    When latitude, longitude and radius_km are all given, stores are
    first limited to that radius and then filtered by the text.
    """
    result = await service.search_stores(
        query=query,
        latitude=latitude,
        longitude=longitude,
        radius_km=radius_km,
    )
    return respond(result, StoreResponse.from_store)


@router.get("/nearby", response_model=ApiResponse[list[StoreResponse]])
async def nearby_stores(
    latitude: Optional[Decimal] = Query(None, ge=-90, le=90),
    longitude: Optional[Decimal] = Query(None, ge=-180, le=180),
    radius_km: float = Query(DEFAULT_RADIUS_KM, gt=0),
    service: StoreService = Depends(get_store_service),
):
    if latitude is None or longitude is None:
        raise ValidationError("latitude and longitude are required")
    result = await service.get_nearby_stores(latitude, longitude, radius_km)
    return respond(result, StoreResponse.from_store)


@router.get("/my-store", response_model=ApiResponse[StoreResponse])
async def my_store(
    context: RequestContext = Depends(get_current_context),
    service: StoreService = Depends(get_store_service),
):
    return respond(await service.get_store_by_user(context.user_id), StoreResponse.from_store)


@router.get("/{store_id}", response_model=ApiResponse[StoreResponse])
async def get_store(
    store_id: int,
    service: StoreService = Depends(get_store_service),
):
    """Store with its products."""
    return respond(await service.get_store(store_id), StoreResponse.from_store)


@router.put("/{store_id}", response_model=ApiResponse[StoreResponse])
async def update_store(
    store_id: int,
    body: UpdateStoreRequest,
    context: RequestContext = Depends(get_current_context),
    service: StoreService = Depends(get_store_service),
):
    """Sparse update; omitted or blank fields are left unchanged."""
    result = await service.update_store(
        store_id,
        context.user_id,
        body.model_dump(exclude_unset=True),
    )
    return respond(result, StoreResponse.from_store)


@router.delete("/{store_id}", response_model=ApiResponse[bool])
async def delete_store(
    store_id: int,
    context: RequestContext = Depends(get_current_context),
    service: StoreService = Depends(get_store_service),
):
    return respond(await service.delete_store(store_id, context.user_id))
