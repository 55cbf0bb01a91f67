from fastapi import APIRouter

import config
from models.base import utcnow
from web.responses import success

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check():
    """Liveness probe for container monitoring. Never rate limited."""
    return success({
        "service": config.APP_NAME,
        "environment": config.RUNTIME_ENVIRONMENT.value,
        "timestamp": utcnow().isoformat(),
    }, "ExpressKart API is running")
