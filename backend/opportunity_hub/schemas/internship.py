from __future__ import annotations

from datetime import date, datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, RootModel
from pydantic.alias_generators import to_camel

from opportunity_hub.models.internship import InternshipTiming, InternshipType


class InternshipIngestRecord(BaseModel):
    # Scrapers post camelCase; snake_case is accepted too.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(min_length=1, max_length=100)
    hiring_organization: str = Field(min_length=1, max_length=120)
    link: HttpUrl
    description: str | None = Field(default=None, max_length=2000)
    type: str | None = Field(default=None, max_length=32)
    timing: str | None = Field(default=None, max_length=32)
    stipend: Annotated[int, Field(ge=0)] | str | None = None
    duration: str | None = Field(default=None, max_length=100)
    experience: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=160)
    deadline: str | None = Field(default=None, max_length=64)
    tags: list[str] | str | None = None
    hiring_manager: str | None = Field(default=None, max_length=100)
    is_verified: bool | None = None
    is_active: bool | None = None
    raw_text: str | None = Field(default=None, max_length=20000)


class InternshipIngestBatch(RootModel[list[InternshipIngestRecord]]):
    root: list[InternshipIngestRecord] = Field(min_length=1, max_length=500)


class InternshipRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None = None
    type: InternshipType | None = None
    timing: InternshipTiming | None = None
    link: str
    stipend: int | None = None
    duration: str | None = None
    experience: str | None = None
    location: str | None = None
    deadline: date | None = None
    tags: list[str]
    hiring_organization: str
    hiring_manager: str | None = None
    is_verified: bool
    is_active: bool
    created_at: datetime


class InternshipIngestResponse(BaseModel):
    success: bool
    count: int
    data: list[InternshipRead]
