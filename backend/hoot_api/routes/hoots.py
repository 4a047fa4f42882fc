"""
Hoot API Backend: Hoot Route Handlers
======================================

What:  CRUD endpoints for hoots and their comments, mounted at /hoots.
How:   Every route requires a verified caller (router-level dependency).
       Handlers extract path/body data and delegate to HootService.
Who:   Called by the frontend feed, hoot detail and comment components.

Route Inventory:
    POST   /hoots                                 create hoot        201
    GET    /hoots                                 list hoots         200
    GET    /hoots/{hoot_id}                       hoot detail        200
    PUT    /hoots/{hoot_id}                       update own hoot    200
    DELETE /hoots/{hoot_id}                       delete own hoot    200
    POST   /hoots/{hoot_id}/comments              add comment        201
    PUT    /hoots/{hoot_id}/comments/{comment_id} edit comment       200
    DELETE /hoots/{hoot_id}/comments/{comment_id} remove comment     200
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hoot_api.database import get_db_session
from hoot_api.schemas.hoot import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    ErrorResponse,
    HootCreate,
    HootResponse,
    HootUpdate,
    MessageResponse,
)
from hoot_api.security import Identity, get_current_user
from hoot_api.services.hoot_service import HootService, get_hoot_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(
    prefix="/hoots",
    tags=["Hoots"],
    dependencies=[Depends(get_current_user)],
    responses={
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
)

_NOT_FOUND = {"description": "Hoot or comment not found", "model": ErrorResponse}
_FORBIDDEN = {"description": "Caller is not the author", "model": ErrorResponse}
_INVALID = {"description": "Invalid body or identifier", "model": ErrorResponse}


@router.post(
    "",
    status_code=201,
    response_model=HootResponse,
    responses={400: _INVALID},
    summary="Create a hoot",
)
async def create_hoot(
    payload: HootCreate,
    caller: Identity = Depends(get_current_user),
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> HootResponse:
    """The caller becomes the author; the new hoot has no comments."""
    return await service.create_hoot(db=db, caller=caller, payload=payload)


@router.get(
    "",
    response_model=List[HootResponse],
    summary="List all hoots, newest first",
)
async def list_hoots(
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> List[HootResponse]:
    return await service.list_hoots(db=db)


@router.get(
    "/{hoot_id}",
    response_model=HootResponse,
    responses={400: _INVALID, 404: _NOT_FOUND},
    summary="Get a single hoot",
)
async def get_hoot(
    hoot_id: UUID,
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> HootResponse:
    """
    Args:
        hoot_id: UUID path parameter; malformed ids are rejected with 400
                 before the service runs.
    """
    return await service.get_hoot(db=db, hoot_id=hoot_id)


@router.put(
    "/{hoot_id}",
    response_model=HootResponse,
    responses={400: _INVALID, 403: _FORBIDDEN, 404: _NOT_FOUND},
    summary="Update a hoot you authored",
)
async def update_hoot(
    hoot_id: UUID,
    payload: HootUpdate,
    caller: Identity = Depends(get_current_user),
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> HootResponse:
    """
    Only the fields present in the body are changed. An `author` key in
    the body is ignored.
    """
    return await service.update_hoot(db=db, caller=caller, hoot_id=hoot_id, payload=payload)


@router.delete(
    "/{hoot_id}",
    response_model=HootResponse,
    responses={400: _INVALID, 403: _FORBIDDEN, 404: _NOT_FOUND},
    summary="Delete a hoot you authored",
)
async def delete_hoot(
    hoot_id: UUID,
    caller: Identity = Depends(get_current_user),
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> HootResponse:
    """Deletes the hoot and every comment on it; returns the deleted hoot."""
    return await service.delete_hoot(db=db, caller=caller, hoot_id=hoot_id)


@router.post(
    "/{hoot_id}/comments",
    status_code=201,
    response_model=CommentResponse,
    responses={400: _INVALID, 404: _NOT_FOUND},
    summary="Comment on a hoot",
)
async def add_comment(
    hoot_id: UUID,
    payload: CommentCreate,
    caller: Identity = Depends(get_current_user),
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await service.add_comment(db=db, caller=caller, hoot_id=hoot_id, payload=payload)


@router.put(
    "/{hoot_id}/comments/{comment_id}",
    response_model=MessageResponse,
    responses={400: _INVALID, 403: _FORBIDDEN, 404: _NOT_FOUND},
    summary="Edit a comment",
)
async def update_comment(
    hoot_id: UUID,
    comment_id: UUID,
    payload: CommentUpdate,
    caller: Identity = Depends(get_current_user),
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """403 only when COMMENT_EDIT_POLICY=comment_author."""
    return await service.update_comment(
        db=db, caller=caller, hoot_id=hoot_id, comment_id=comment_id, payload=payload
    )


@router.delete(
    "/{hoot_id}/comments/{comment_id}",
    response_model=MessageResponse,
    responses={400: _INVALID, 403: _FORBIDDEN, 404: _NOT_FOUND},
    summary="Remove a comment",
)
async def delete_comment(
    hoot_id: UUID,
    comment_id: UUID,
    caller: Identity = Depends(get_current_user),
    service: HootService = Depends(get_hoot_service),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await service.delete_comment(
        db=db, caller=caller, hoot_id=hoot_id, comment_id=comment_id
    )
