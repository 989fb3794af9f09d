"""Goals REST API: list (with derived progress), create, delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from src.bj_account.application.schemas import CreateGoalRequest
from src.bj_account.application.service import JournalApplicationService
from src.bj_account.domain.models import Account
from src.bj_account.domain.repository import KeyValueStoreProtocol
from src.bj_account.infrastructure.kv_factory import get_kv_store
from src.bj_common.response import ApiResponse, success_response
from src.bj_gateway.auth.dependencies import get_current_user

router = APIRouter(prefix="/goals", tags=["goals"])

_service = JournalApplicationService()


@router.get("")
async def list_goals(
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    items = await _service.list_goals(kv, current_user.id)
    resp = success_response({"items": [i.model_dump() for i in items]})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_goal(
    body: CreateGoalRequest,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_goal(kv, current_user.id, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    current_user: Annotated[Account, Depends(get_current_user)],
    kv: Annotated[KeyValueStoreProtocol, Depends(get_kv_store)],
    request: Request,
) -> ApiResponse:
    await _service.delete_goal(kv, current_user.id, goal_id)
    resp = success_response({"deleted": goal_id})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
