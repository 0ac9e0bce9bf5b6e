from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from opportunity_hub.core.config import settings
from opportunity_hub.core.rate_limit import client_ip, per_identifier_limiter
from opportunity_hub.db.session import get_session
from opportunity_hub.schemas.internship import InternshipIngestBatch, InternshipIngestResponse, InternshipRead
from opportunity_hub.services import internships_ingest
from opportunity_hub.services.ingest_auth import require_ingest_token

router = APIRouter(prefix="/internships", tags=["internships"])

ingest_rate_limit = per_identifier_limiter(
    client_ip,
    settings.ingest_rate_limit,
    settings.ingest_rate_window_seconds,
    key="internships:ingest",
)


@router.post(
    "/ingest",
    response_model=InternshipIngestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(ingest_rate_limit), Depends(require_ingest_token)],
)
async def ingest_internships(
    payload: InternshipIngestBatch,
    session: AsyncSession = Depends(get_session),
) -> InternshipIngestResponse:
    rows = await internships_ingest.ingest_internships(session, payload.root)
    return InternshipIngestResponse(
        success=True,
        count=len(rows),
        data=[InternshipRead.model_validate(row) for row in rows],
    )
