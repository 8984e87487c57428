"""Catalog API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from tutordesk.core.enums import RoleEnum
from tutordesk.modules.catalog.schemas import SubjectCreate, SubjectRead, TopicCreate, TopicRead
from tutordesk.modules.catalog.service import CatalogService, get_catalog_service
from tutordesk.modules.identity.service import get_current_user, require_roles

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/subjects", response_model=list[SubjectRead])
async def list_subjects(
    service: CatalogService = Depends(get_catalog_service),
    _=Depends(get_current_user),
) -> list[SubjectRead]:
    """List subjects with their topics."""
    subjects = await service.list_subjects()
    return [SubjectRead.model_validate(subject) for subject in subjects]


@router.post("/subjects", response_model=SubjectRead, status_code=status.HTTP_201_CREATED)
async def create_subject(
    payload: SubjectCreate,
    service: CatalogService = Depends(get_catalog_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> SubjectRead:
    """Create subject."""
    subject = await service.create_subject(payload, current_user)
    return SubjectRead.model_validate(subject)


@router.post("/subjects/{subject_id}/topics", response_model=TopicRead, status_code=status.HTTP_201_CREATED)
async def create_topic(
    subject_id: int,
    payload: TopicCreate,
    service: CatalogService = Depends(get_catalog_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> TopicRead:
    """Create topic under subject."""
    topic = await service.create_topic(subject_id, payload, current_user)
    return TopicRead.model_validate(topic)


@router.get("/subjects/{subject_id}/topics", response_model=list[TopicRead])
async def list_topics(
    subject_id: int,
    service: CatalogService = Depends(get_catalog_service),
    _=Depends(get_current_user),
) -> list[TopicRead]:
    """List topics of a subject."""
    topics = await service.list_topics(subject_id)
    return [TopicRead.model_validate(topic) for topic in topics]
