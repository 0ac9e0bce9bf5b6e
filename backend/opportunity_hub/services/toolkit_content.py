from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.models.toolkit import Toolkit
from opportunity_hub.models.toolkit_content import ToolkitContentItem
from opportunity_hub.schemas.toolkit_content import ContentItemCreate, ContentItemUpdate
from opportunity_hub.services import purchases as purchases_service
from opportunity_hub.services.errors import ToolkitAccessDenied, ToolkitNotFound

logger = logging.getLogger(__name__)


async def list_content_items(session: AsyncSession, *, toolkit_id: UUID) -> list[ToolkitContentItem]:
    result = await session.execute(
        select(ToolkitContentItem)
        .where(ToolkitContentItem.toolkit_id == toolkit_id)
        .order_by(ToolkitContentItem.order_index, ToolkitContentItem.created_at)
    )
    return list(result.scalars().all())


async def get_toolkit_content(
    session: AsyncSession, *, user_id: UUID, toolkit_id: UUID
) -> tuple[Toolkit, list[ToolkitContentItem]]:
    """Return a toolkit's ordered content items for a user who owns it.

    Ownership is checked before the toolkit lookup, so callers without a
    completed purchase get the same answer whether or not the toolkit exists.
    Retired toolkits stay readable for their owners.
    """
    if not await purchases_service.has_access(session, user_id=user_id, toolkit_id=toolkit_id):
        logger.info("toolkit_content_denied", extra={"user_id": str(user_id), "toolkit_id": str(toolkit_id)})
        raise ToolkitAccessDenied()
    toolkit = await session.get(Toolkit, toolkit_id)
    if toolkit is None:
        raise ToolkitNotFound()
    return toolkit, await list_content_items(session, toolkit_id=toolkit_id)


async def create_content_item(session: AsyncSession, *, toolkit_id: UUID, payload: ContentItemCreate) -> ToolkitContentItem:
    if await session.get(Toolkit, toolkit_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Toolkit not found")
    item = ToolkitContentItem(
        toolkit_id=toolkit_id,
        title=payload.title.strip(),
        type=payload.type,
        content=payload.content,
        video_url=payload.video_url,
        order_index=payload.order_index,
    )
    session.add(item)
    await session.commit()
    await session.refresh(item)
    logger.info("toolkit_content_created", extra={"item_id": str(item.id), "toolkit_id": str(toolkit_id)})
    return item


async def update_content_item(
    session: AsyncSession, *, item: ToolkitContentItem, payload: ContentItemUpdate
) -> ToolkitContentItem:
    fields = payload.model_fields_set
    for required in ("title", "type", "order_index"):
        if required in fields and getattr(payload, required) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{required} cannot be null")
    if "title" in fields:
        item.title = payload.title.strip()
    if "type" in fields:
        item.type = payload.type
    if "content" in fields:
        item.content = payload.content
    if "video_url" in fields:
        item.video_url = payload.video_url
    if "order_index" in fields:
        item.order_index = payload.order_index

    session.add(item)
    await session.commit()
    await session.refresh(item)
    logger.info("toolkit_content_updated", extra={"item_id": str(item.id), "fields": sorted(fields)})
    return item


async def delete_content_item(session: AsyncSession, *, item: ToolkitContentItem) -> None:
    item_id = str(item.id)
    await session.delete(item)
    await session.commit()
    logger.info("toolkit_content_deleted", extra={"item_id": item_id})
