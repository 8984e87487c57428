"""Catalog schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SubjectCreate(BaseModel):
    """Create subject request."""

    name: str = Field(min_length=1, max_length=128)


class TopicCreate(BaseModel):
    """Create topic request."""

    name: str = Field(min_length=1, max_length=128)


class TopicRead(BaseModel):
    """Topic response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    subject_id: int
    name: str


class SubjectRead(BaseModel):
    """Subject response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    topics: list[TopicRead] = []
