from fastapi import APIRouter, Depends

from opportunity_hub.api.v1 import admin_coupons
from opportunity_hub.api.v1 import admin_toolkit_content
from opportunity_hub.api.v1 import coupons
from opportunity_hub.api.v1 import internships
from opportunity_hub.api.v1 import toolkits
from opportunity_hub.core.dependencies import require_admin
from opportunity_hub.core.metrics import snapshot as metrics_snapshot
from opportunity_hub.models.user import User

api_router = APIRouter()

api_router.include_router(coupons.router)
api_router.include_router(toolkits.router)
api_router.include_router(internships.router)
api_router.include_router(admin_coupons.router)
api_router.include_router(admin_toolkit_content.router)


@api_router.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@api_router.get("/metrics", tags=["metrics"])
def metrics(_: User = Depends(require_admin)) -> dict[str, int]:
    return metrics_snapshot()
