"""
User API Routes

Profile read/update for the signed-in user; listing and activation
switches for administrators.
"""

from fastapi import APIRouter, Depends

from salehunter.api.dependencies import get_current_context, get_user_service, require_admin
from salehunter.api.responses import respond
from salehunter.api.schemas import ApiResponse, UpdateProfileRequest, UserResponse
from salehunter.services import RequestContext, UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ApiResponse[UserResponse])
async def get_profile(
    context: RequestContext = Depends(get_current_context),
    service: UserService = Depends(get_user_service),
):
    return respond(await service.get_profile(context.user_id), UserResponse.from_user)


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    body: UpdateProfileRequest,
    context: RequestContext = Depends(get_current_context),
    service: UserService = Depends(get_user_service),
):
    """Sparse update; blank fields are left unchanged."""
    result = await service.update_profile(context.user_id, body.model_dump(exclude_unset=True))
    return respond(result, UserResponse.from_user)


# =============================================================================
# Administration
# =============================================================================

@router.get("", response_model=ApiResponse[list[UserResponse]])
async def list_users(
    admin: RequestContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return respond(await service.get_all_users(), UserResponse.from_user)


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: int,
    admin: RequestContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return respond(await service.get_user(user_id), UserResponse.from_user)


@router.post("/{user_id}/deactivate", response_model=ApiResponse[bool])
async def deactivate_user(
    user_id: int,
    admin: RequestContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return respond(await service.deactivate_user(user_id))


@router.post("/{user_id}/activate", response_model=ApiResponse[bool])
async def activate_user(
    user_id: int,
    admin: RequestContext = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return respond(await service.activate_user(user_id))
