"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from tutordesk.core.enums import RoleEnum
from tutordesk.modules.identity.schemas import UserCreate, UserRead
from tutordesk.modules.identity.service import (
    IdentityService,
    get_current_user,
    get_identity_service,
    require_roles,
)

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    service: IdentityService = Depends(get_identity_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> UserRead:
    """Provision a student, tutor or admin account."""
    user = await service.create_user(payload, current_user)
    return UserRead.model_validate(user)


@router.get("/users/me", response_model=UserRead)
async def get_me(current_user=Depends(get_current_user)) -> UserRead:
    """Return profile of authenticated user."""
    return UserRead.model_validate(current_user)
