"""
Authentication API Routes for SaleHunter.

Handles:
- Login / Register (token pair issuance)
- Refresh / Logout
- Password change, forgot and reset
"""

from fastapi import APIRouter, Depends, Query, status

from salehunter.api.dependencies import get_auth_service, get_current_context
from salehunter.api.responses import respond
from salehunter.api.schemas import (
    ApiResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshResponse,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from salehunter.services import AuthService, RequestContext

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(auth_result) -> LoginResponse:
    return LoginResponse(
        access_token=auth_result.tokens.access_token,
        refresh_token=auth_result.tokens.refresh_token,
        expires_at=auth_result.tokens.expires_at,
        user=UserResponse.from_user(auth_result.user),
    )


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Exchange email and password for an access/refresh token pair."""
    result = await service.login(body.email, body.password)
    return respond(result, _login_response)


@router.post(
    "/register",
    response_model=ApiResponse[LoginResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create a customer account and sign it in."""
    result = await service.register(
        name=body.name,
        email=body.email,
        password=body.password,
        phone_number=body.phone_number,
    )
    return respond(result, _login_response)


@router.post("/refresh", response_model=ApiResponse[RefreshResponse])
async def refresh(
    body: RefreshTokenRequest,
    service: AuthService = Depends(get_auth_service),
):
    result = await service.refresh_token(body.refresh_token)
    return respond(
        result,
        lambda r: RefreshResponse(access_token=r.access_token, expires_at=r.expires_at),
    )


@router.post("/logout", response_model=ApiResponse[bool])
async def logout(
    context: RequestContext = Depends(get_current_context),
    service: AuthService = Depends(get_auth_service),
):
    return respond(await service.logout(context.user_id))


@router.post("/change-password", response_model=ApiResponse[bool])
async def change_password(
    body: ChangePasswordRequest,
    context: RequestContext = Depends(get_current_context),
    service: AuthService = Depends(get_auth_service),
):
    result = await service.change_password(
        context.user_id,
        body.current_password,
        body.new_password,
    )
    return respond(result)


@router.post("/forgot-password", response_model=ApiResponse[None])
async def forgot_password(
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Always answers with the same message, whether or not the email is known."""
    return respond(await service.forgot_password(body.email))


@router.post("/reset-password", response_model=ApiResponse[bool])
async def reset_password(
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    return respond(await service.reset_password(body.token, body.new_password))


@router.get("/verify-reset-token", response_model=ApiResponse[bool])
async def verify_reset_token(
    token: str = Query(..., min_length=1),
    service: AuthService = Depends(get_auth_service),
):
    return respond(await service.verify_reset_token(token))
