from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ToolkitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    price: int
    original_price: int | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ToolkitDetail(BaseModel):
    toolkit: ToolkitRead
    has_purchased: bool


class ToolkitAccessRead(BaseModel):
    has_purchased: bool
