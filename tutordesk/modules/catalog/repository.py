"""Catalog repository layer."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutordesk.modules.catalog.models import Subject, Topic


class CatalogRepository:
    """DB operations for subjects and topics."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_subject_by_id(self, subject_id: int) -> Subject | None:
        stmt = select(Subject).where(Subject.id == subject_id)
        return await self.session.scalar(stmt)

    async def get_subject_by_name(self, name: str) -> Subject | None:
        stmt = select(Subject).where(func.lower(Subject.name) == name.strip().lower())
        return await self.session.scalar(stmt)

    async def get_topic_by_id(self, subject_id: int, topic_id: int) -> Topic | None:
        stmt = select(Topic).where(Topic.id == topic_id, Topic.subject_id == subject_id)
        return await self.session.scalar(stmt)

    async def get_topic_by_name(self, subject_id: int, name: str) -> Topic | None:
        stmt = select(Topic).where(
            Topic.subject_id == subject_id,
            func.lower(Topic.name) == name.strip().lower(),
        )
        return await self.session.scalar(stmt)

    async def list_subjects(self) -> list[Subject]:
        stmt = select(Subject).options(selectinload(Subject.topics)).order_by(Subject.name)
        return list((await self.session.scalars(stmt)).all())

    async def list_topics(self, subject_id: int) -> list[Topic]:
        stmt = select(Topic).where(Topic.subject_id == subject_id).order_by(Topic.name)
        return list((await self.session.scalars(stmt)).all())

    async def create_subject(self, name: str) -> Subject:
        subject = Subject(name=name)
        self.session.add(subject)
        await self.session.flush()
        await self.session.refresh(subject, attribute_names=["topics"])
        return subject

    async def create_topic(self, subject_id: int, name: str) -> Topic:
        topic = Topic(subject_id=subject_id, name=name)
        self.session.add(topic)
        await self.session.flush()
        return topic
