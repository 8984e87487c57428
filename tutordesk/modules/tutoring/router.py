"""Tutoring API router."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from tutordesk.core.enums import RoleEnum
from tutordesk.modules.identity.service import get_current_user, require_roles
from tutordesk.modules.tutoring.schemas import (
    TutoringAdminFilters,
    TutoringCancelRequest,
    TutoringHistoryFilters,
    TutoringRead,
    TutoringRequestCreate,
    TutoringUpdate,
)
from tutordesk.modules.tutoring.service import TutoringService, get_tutoring_service
from tutordesk.shared.pagination import Page, build_page, get_pagination_params
from tutordesk.shared.results import ActionResult, action_response

router = APIRouter(prefix="/tutorings", tags=["tutorings"])


@router.post("", response_model=ActionResult, status_code=status.HTTP_201_CREATED)
async def request_tutoring(
    payload: TutoringRequestCreate,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT)),
) -> JSONResponse:
    """Request a session with a tutor."""
    result = await service.create_request(current_user.id, payload)
    return action_response(result, success_status=status.HTTP_201_CREATED)


@router.post("/{tutoring_id}/accept", response_model=ActionResult)
async def accept_tutoring(
    tutoring_id: UUID,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.TUTOR)),
) -> JSONResponse:
    """Confirm a pending request."""
    return action_response(await service.accept(current_user.id, tutoring_id))


@router.post("/{tutoring_id}/reject", response_model=ActionResult)
async def reject_tutoring(
    tutoring_id: UUID,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.TUTOR)),
) -> JSONResponse:
    """Decline a pending request."""
    return action_response(await service.reject(current_user.id, tutoring_id))


@router.post("/{tutoring_id}/cancel", response_model=ActionResult)
async def cancel_tutoring(
    tutoring_id: UUID,
    payload: TutoringCancelRequest | None = None,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT)),
) -> JSONResponse:
    """Cancel own pending or confirmed session."""
    reason = payload.reason if payload is not None else None
    return action_response(await service.cancel(current_user.id, tutoring_id, reason))


@router.post("/{tutoring_id}/complete", response_model=ActionResult)
async def complete_tutoring(
    tutoring_id: UUID,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT, RoleEnum.TUTOR)),
) -> JSONResponse:
    """Mark a confirmed session as completed."""
    return action_response(await service.complete(current_user.id, tutoring_id))


@router.patch("/{tutoring_id}", response_model=ActionResult)
async def update_tutoring(
    tutoring_id: UUID,
    payload: TutoringUpdate,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT)),
) -> JSONResponse:
    """Reschedule or change topic of own session."""
    return action_response(await service.update(current_user.id, tutoring_id, payload))


@router.get("/my/upcoming", response_model=list[TutoringRead])
async def list_my_upcoming(
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT, RoleEnum.TUTOR)),
) -> list[TutoringRead]:
    """Upcoming sessions of current student, or confirmed ones of current tutor."""
    if current_user.role == RoleEnum.TUTOR:
        tutorings = await service.list_upcoming_for_tutor(current_user)
    else:
        tutorings = await service.list_upcoming_for_student(current_user)
    return [TutoringRead.from_tutoring(item) for item in tutorings]


@router.get("/my/history", response_model=list[TutoringRead])
async def list_my_history(
    filters: Annotated[TutoringHistoryFilters, Query()],
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.STUDENT)),
) -> list[TutoringRead]:
    """Past completed or canceled sessions of current student."""
    tutorings = await service.list_history_for_student(current_user, filters)
    return [TutoringRead.from_tutoring(item) for item in tutorings]


@router.get("/my/pending", response_model=list[TutoringRead])
async def list_my_pending(
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.TUTOR)),
) -> list[TutoringRead]:
    """Requests waiting for current tutor's decision."""
    tutorings = await service.list_pending_for_tutor(current_user)
    return [TutoringRead.from_tutoring(item) for item in tutorings]


@router.get("", response_model=Page[TutoringRead])
async def list_tutorings(
    filters: Annotated[TutoringAdminFilters, Query()],
    pagination=Depends(get_pagination_params),
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> Page[TutoringRead]:
    """Admin listing of all sessions."""
    items, total = await service.list_tutorings(current_user, filters, pagination.limit, pagination.offset)
    serialized = [TutoringRead.from_tutoring(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{tutoring_id}", response_model=TutoringRead)
async def get_tutoring(
    tutoring_id: UUID,
    service: TutoringService = Depends(get_tutoring_service),
    current_user=Depends(get_current_user),
) -> TutoringRead:
    """Get one session visible to current user."""
    tutoring = await service.get_tutoring(tutoring_id, current_user)
    return TutoringRead.from_tutoring(tutoring)
