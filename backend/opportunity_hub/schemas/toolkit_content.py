from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from opportunity_hub.models.toolkit_content import ContentItemType


class ContentItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    toolkit_id: UUID
    title: str
    type: ContentItemType
    content: str | None = None
    video_url: str | None = None
    order_index: int
    created_at: datetime
    updated_at: datetime


class ToolkitSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str


class ToolkitContentResponse(BaseModel):
    toolkit: ToolkitSummary
    content_items: list[ContentItemRead]


class ContentItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    type: ContentItemType
    content: str | None = None
    video_url: str | None = Field(default=None, max_length=2048)
    order_index: int = Field(default=0, ge=0)


class ContentItemUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    type: ContentItemType | None = None
    content: str | None = None
    video_url: str | None = Field(default=None, max_length=2048)
    order_index: int | None = Field(default=None, ge=0)
