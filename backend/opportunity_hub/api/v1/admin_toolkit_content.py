from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core.dependencies import require_admin
from opportunity_hub.db.session import get_session
from opportunity_hub.models.toolkit_content import ToolkitContentItem
from opportunity_hub.models.user import User
from opportunity_hub.schemas.toolkit_content import ContentItemCreate, ContentItemRead, ContentItemUpdate
from opportunity_hub.services import toolkit_content as content_service

router = APIRouter(prefix="/admin", tags=["admin"])


async def _get_item_or_404(session: AsyncSession, item_id: UUID) -> ToolkitContentItem:
    item = await session.get(ToolkitContentItem, item_id)
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content item not found")
    return item


@router.get("/toolkits/{toolkit_id}/content", response_model=list[ContentItemRead])
async def admin_list_content(
    toolkit_id: UUID,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> list[ContentItemRead]:
    items = await content_service.list_content_items(session, toolkit_id=toolkit_id)
    return [ContentItemRead.model_validate(item) for item in items]


@router.post("/toolkits/{toolkit_id}/content", response_model=ContentItemRead, status_code=status.HTTP_201_CREATED)
async def admin_create_content(
    toolkit_id: UUID,
    payload: ContentItemCreate,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> ContentItemRead:
    item = await content_service.create_content_item(session, toolkit_id=toolkit_id, payload=payload)
    return ContentItemRead.model_validate(item)


@router.patch("/toolkit-content-items/{item_id}", response_model=ContentItemRead)
async def admin_update_content(
    item_id: UUID,
    payload: ContentItemUpdate,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> ContentItemRead:
    item = await _get_item_or_404(session, item_id)
    item = await content_service.update_content_item(session, item=item, payload=payload)
    return ContentItemRead.model_validate(item)


@router.delete("/toolkit-content-items/{item_id}")
async def admin_delete_content(
    item_id: UUID,
    session: AsyncSession = Depends(get_session),
    _: User = Depends(require_admin),
) -> dict[str, bool]:
    item = await _get_item_or_404(session, item_id)
    await content_service.delete_content_item(session, item=item)
    return {"success": True}
