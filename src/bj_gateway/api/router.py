"""Auth API router: register, login, refresh, Telegram link code.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from config.settings import settings
from src.bj_account.domain.models import Account
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_factory import get_kv_store
from src.bj_common.response import ApiResponse, success_response
from src.bj_gateway.auth.dependencies import get_current_user
from src.bj_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    TelegramCodeResponse,
    UserInfo,
)
from src.bj_gateway.user.service import UserService
from src.bj_sync.application.service import SyncService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()
_sync = SyncService()


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="Account registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
) -> ApiResponse:
    account = await _service.register(
        kv, body.email, body.nickname, body.password, body.referral_code
    )

    data = RegisterResponse(
        account_id=account.id,
        nickname=account.display_name,
        email=account.id,
        referral_code=account.referral_code,
        reward_points=account.reward_points,
        created_at=account.registered_at.isoformat(),
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Account registered successfully"
    return resp


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Account login",
)
async def login(
    request: Request,
    body: LoginRequest,
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
) -> ApiResponse:
    account, access_token, refresh_token = await _service.login(kv, body.email, body.password)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo(account_id=account.id, nickname=account.display_name, email=account.id),
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Login successful"
    return resp


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token)

    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Token refreshed"
    return resp


@router.post(
    "/telegram-code",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Issue a one-time code for linking a Telegram chat",
)
async def telegram_code(
    request: Request,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
) -> ApiResponse:
    code = await _sync.issue_link_code(kv, current_user.id)

    data = TelegramCodeResponse(code=code, expires_in=settings.LINK_CODE_TTL_SECONDS)
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    resp.message = "Send this code to the bot within the expiry window"
    return resp
