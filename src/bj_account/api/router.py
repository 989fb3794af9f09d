"""Account REST API: snapshot, balance, ledger, invariant check. All require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bj_account.application.schemas import SetBalanceRequest
from src.bj_account.application.service import JournalApplicationService
from src.bj_account.domain.models import Account
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_factory import get_kv_store
from src.bj_common.enums import LedgerEntryKind
from src.bj_common.response import ApiResponse, success_response
from src.bj_gateway.auth.dependencies import get_current_user

router = APIRouter(prefix="/account", tags=["account"])

_service = JournalApplicationService()


@router.get("")
async def get_snapshot(
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_snapshot(kv, current_user.id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/balance")
async def get_balance(
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(kv, current_user.id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.put("/balance")
async def set_balance(
    body: SetBalanceRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.set_balance(kv, current_user.id, body.balance_cents)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    kind: LedgerEntryKind | None = Query(None, description="Filter by entry kind"),
) -> ApiResponse:
    data = await _service.list_ledger(
        kv, current_user.id, cursor, limit, kind.value if kind else None
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/verify")
async def verify(
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.verify(kv, current_user.id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
