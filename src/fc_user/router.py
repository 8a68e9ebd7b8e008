"""User API router: create, list, get.

All endpoints return ApiResponse. request_id is read from
request.state (injected by RequestLogMiddleware).
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.fc_common.database import get_db_session
from src.fc_common.response import ApiResponse, success_response
from src.fc_user.schemas import CreateUserRequest, UserListResponse, UserResponse
from src.fc_user.service import UserService

router = APIRouter(prefix="/users", tags=["users"])
_service = UserService()


def _get_request_id(request: Request) -> str:
    """Read request_id injected by RequestLogMiddleware, fallback if absent."""
    return getattr(request.state, "request_id", "req_unknown")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ApiResponse)
async def create_user(
    body: CreateUserRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    async with db.begin():
        user = await _service.create_user(
            body.email, body.password, body.first_name, body.last_name, db
        )
    resp = success_response(UserResponse.from_model(user).model_dump())
    resp.request_id = _get_request_id(request)
    return resp


@router.get("", response_model=ApiResponse)
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    users = await _service.list_users(limit, offset, db)
    data = UserListResponse(
        items=[UserResponse.from_model(u) for u in users], limit=limit, offset=offset
    )
    resp = success_response(data.model_dump())
    resp.request_id = _get_request_id(request)
    return resp


@router.get("/{user_id}", response_model=ApiResponse)
async def get_user(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    user = await _service.get_user(user_id, db)
    resp = success_response(UserResponse.from_model(user).model_dump())
    resp.request_id = _get_request_id(request)
    return resp
