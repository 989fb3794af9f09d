"""Wager REST API: list, get, create, edit, settle, delete. All require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from src.bj_account.application.schemas import (
    CreateWagerRequest,
    SetWagerStatusRequest,
    UpdateWagerRequest,
)
from src.bj_account.application.service import JournalApplicationService
from src.bj_account.domain.models import Account
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_factory import get_kv_store
from src.bj_common.enums import WagerStatus
from src.bj_common.response import ApiResponse, success_response
from src.bj_gateway.auth.dependencies import get_current_user

router = APIRouter(prefix="/wagers", tags=["wagers"])

_service = JournalApplicationService()


@router.get("")
async def list_wagers(
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
    status_filter: WagerStatus | None = Query(None, alias="status"),
) -> ApiResponse:
    items = await _service.list_wagers(kv, current_user.id, status_filter)
    resp = success_response({"items": [i.model_dump() for i in items]})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{wager_id}")
async def get_wager(
    wager_id: str,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_wager(kv, current_user.id, wager_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_wager(
    body: CreateWagerRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_wager(kv, current_user.id, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.patch("/{wager_id}")
async def update_wager(
    wager_id: str,
    body: UpdateWagerRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_wager(kv, current_user.id, wager_id, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{wager_id}/status")
async def set_wager_status(
    wager_id: str,
    body: SetWagerStatusRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.set_wager_status(kv, current_user.id, wager_id, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/{wager_id}")
async def delete_wager(
    wager_id: str,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.delete_wager(kv, current_user.id, wager_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
