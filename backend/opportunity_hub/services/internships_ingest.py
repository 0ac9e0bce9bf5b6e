from __future__ import annotations

import logging
import re
from datetime import date, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core.config import settings
from opportunity_hub.models.internship import Internship, InternshipTiming, InternshipType
from opportunity_hub.models.user import User
from opportunity_hub.schemas.internship import InternshipIngestRecord

logger = logging.getLogger(__name__)

_REMOTE_ALIASES = {"work-from-home", "work_from_home", "wfh", "remote"}
_ONSITE_ALIASES = {"in-office", "in_office", "onsite", "on-site"}
_FULL_TIME_ALIASES = {"full-time", "full_time", "full time"}
_PART_TIME_ALIASES = {"part-time", "part_time", "part time", "shift-based", "shift_based"}

_REMOTE_RE = re.compile(r"\b(remote|wfh|work\s*from\s*home)\b")
_ONSITE_RE = re.compile(r"\b(on\s*-?\s*site|in\s*-?\s*office|office)\b")
_HYBRID_RE = re.compile(r"\bhybrid\b")
_FULL_TIME_RE = re.compile(r"\bfull\s*-?\s*time\b")
_PART_TIME_RE = re.compile(r"\bpart\s*-?\s*time\b|\bshift\s*-?\s*based\b")
_STIPEND_RE = re.compile(r"(?:₹|rs\.?|inr)?\s*([0-9][0-9,]*)\s*(?:/?\s*month|pm|per\s*month)?", re.IGNORECASE)
_DEADLINE_WORDS_RE = re.compile(
    r"\b(?:deadline|apply\s*by|last\s*date)[:\s-]*([A-Za-z]{3,9}\s+\d{1,2},?\s+\d{4})\b", re.IGNORECASE
)
_SLASH_DATE_RE = re.compile(r"\b(\d{1,2}[/-]\d{1,2}[/-]\d{4})\b")


def normalize_type(value: str | None, fallback_text: str = "") -> InternshipType | None:
    normalized = (value or "").strip().lower()
    if normalized in _REMOTE_ALIASES:
        return InternshipType.remote
    if normalized in _ONSITE_ALIASES:
        return InternshipType.onsite
    if normalized == InternshipType.hybrid.value:
        return InternshipType.hybrid

    haystack = fallback_text.lower()
    if _REMOTE_RE.search(haystack):
        return InternshipType.remote
    if _ONSITE_RE.search(haystack):
        return InternshipType.onsite
    if _HYBRID_RE.search(haystack):
        return InternshipType.hybrid
    return None


def normalize_timing(value: str | None, fallback_text: str = "") -> InternshipTiming | None:
    normalized = (value or "").strip().lower()
    if normalized in _FULL_TIME_ALIASES:
        return InternshipTiming.full_time
    if normalized in _PART_TIME_ALIASES:
        return InternshipTiming.part_time

    haystack = fallback_text.lower()
    if _FULL_TIME_RE.search(haystack):
        return InternshipTiming.full_time
    if _PART_TIME_RE.search(haystack):
        return InternshipTiming.part_time
    return None


def normalize_tags(tags: list[str] | str | None) -> list[str]:
    if not tags:
        return []
    items = tags if isinstance(tags, list) else tags.split(",")
    return [tag.strip().lower() for tag in items if tag.strip()]


def parse_stipend(stipend: int | str | None, fallback_text: str = "") -> int | None:
    if isinstance(stipend, int):
        return stipend
    source = f"{stipend or ''} {fallback_text}"
    match = _STIPEND_RE.search(source)
    if not match:
        return None
    try:
        return int(match.group(1).replace(",", ""))
    except ValueError:
        return None


def _parse_month_name_date(raw: str) -> date | None:
    cleaned = raw.replace(",", "")
    for fmt in ("%B %d %Y", "%b %d %Y"):
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def _parse_slash_date(raw: str) -> date | None:
    first, second, year = (int(part) for part in raw.replace("-", "/").split("/"))
    # Month-first wins when both readings are valid dates.
    for month, day in ((first, second), (second, first)):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return None


def parse_deadline(deadline: str | None, fallback_text: str = "") -> date | None:
    raw = (deadline or "").strip()
    if raw:
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
        except ValueError:
            pass

    words = _DEADLINE_WORDS_RE.search(fallback_text)
    if words:
        parsed = _parse_month_name_date(words.group(1))
        if parsed:
            return parsed

    slash = _SLASH_DATE_RE.search(fallback_text)
    if slash:
        return _parse_slash_date(slash.group(1))
    return None


def _clean(value: str | None) -> str | None:
    cleaned = (value or "").strip()
    return cleaned or None


def build_internship(record: InternshipIngestRecord, *, owner_id: UUID) -> Internship:
    fallback_text = f"{record.title or ''} {record.description or ''} {record.raw_text or ''}"
    return Internship(
        title=record.title.strip(),
        description=_clean(record.description),
        type=normalize_type(record.type, fallback_text),
        timing=normalize_timing(record.timing, fallback_text),
        link=str(record.link).strip(),
        stipend=parse_stipend(record.stipend, fallback_text),
        duration=_clean(record.duration),
        experience=_clean(record.experience),
        location=_clean(record.location),
        deadline=parse_deadline(record.deadline, fallback_text),
        tags=normalize_tags(record.tags),
        hiring_organization=record.hiring_organization.strip(),
        hiring_manager=_clean(record.hiring_manager),
        is_verified=record.is_verified if record.is_verified is not None else False,
        is_active=record.is_active if record.is_active is not None else True,
        user_id=owner_id,
    )


async def resolve_ingest_owner(session: AsyncSession) -> UUID:
    raw = (settings.ingest_user_id or "").strip()
    if not raw:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ingest user is not configured")
    try:
        owner_id = UUID(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ingest user id is invalid")
    if await session.get(User, owner_id) is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Ingest user does not exist")
    return owner_id


async def ingest_internships(session: AsyncSession, records: list[InternshipIngestRecord]) -> list[Internship]:
    owner_id = await resolve_ingest_owner(session)
    rows = [build_internship(record, owner_id=owner_id) for record in records]
    session.add_all(rows)
    await session.commit()
    for row in rows:
        await session.refresh(row)
    logger.info("internships_ingested", extra={"count": len(rows)})
    return rows
