"""Catalog business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tutordesk.core.database import get_db_session
from tutordesk.core.enums import RoleEnum
from tutordesk.modules.catalog.models import Subject, Topic
from tutordesk.modules.catalog.repository import CatalogRepository
from tutordesk.modules.catalog.schemas import SubjectCreate, TopicCreate
from tutordesk.modules.identity.models import User
from tutordesk.shared.exceptions import ConflictException, NotFoundException, UnauthorizedException


class CatalogService:
    """Subject and topic lookups shared by request intake."""

    def __init__(self, repository: CatalogRepository) -> None:
        self.repository = repository

    async def resolve_subject(self, reference: str) -> Subject | None:
        """Find a subject by numeric id first, then by case-insensitive name."""
        value = reference.strip()
        if value.isdigit():
            subject = await self.repository.get_subject_by_id(int(value))
            if subject is not None:
                return subject
        return await self.repository.get_subject_by_name(value)

    async def resolve_topic(self, subject: Subject, reference: str) -> Topic | None:
        """Find a topic of the subject by numeric id first, then by name."""
        value = reference.strip()
        if value.isdigit():
            topic = await self.repository.get_topic_by_id(subject.id, int(value))
            if topic is not None:
                return topic
        return await self.repository.get_topic_by_name(subject.id, value)

    async def list_subjects(self) -> list[Subject]:
        return await self.repository.list_subjects()

    async def list_topics(self, subject_id: int) -> list[Topic]:
        if await self.repository.get_subject_by_id(subject_id) is None:
            raise NotFoundException("Subject not found")
        return await self.repository.list_topics(subject_id)

    async def create_subject(self, payload: SubjectCreate, actor: User) -> Subject:
        """Create a subject (admin only)."""
        if actor.role != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can manage subjects")
        if await self.repository.get_subject_by_name(payload.name) is not None:
            raise ConflictException(f"Subject already exists: {payload.name}")
        return await self.repository.create_subject(payload.name.strip())

    async def create_topic(self, subject_id: int, payload: TopicCreate, actor: User) -> Topic:
        """Create a topic under an existing subject (admin only)."""
        if actor.role != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can manage topics")
        subject = await self.repository.get_subject_by_id(subject_id)
        if subject is None:
            raise NotFoundException("Subject not found")
        if await self.repository.get_topic_by_name(subject.id, payload.name) is not None:
            raise ConflictException(f"Topic already exists: {payload.name}")
        return await self.repository.create_topic(subject.id, payload.name.strip())


async def get_catalog_service(session: AsyncSession = Depends(get_db_session)) -> CatalogService:
    """Dependency provider for catalog service."""
    return CatalogService(CatalogRepository(session))
