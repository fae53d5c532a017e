from fastapi import APIRouter, Depends, HTTPException

from restload.errors import RestloadError
from restload.lib.log import get_logger
from restload.models import CachedObjects, StatusPayload
from restload.server.deps import get_service
from restload.service import ReadinessService

logger = get_logger(__name__)

router = APIRouter()


@router.get("/status", response_model=StatusPayload)
def get_status(service: ReadinessService = Depends(get_service)) -> StatusPayload:
    return service.status()


@router.get("/objects", response_model=CachedObjects)
async def get_objects(service: ReadinessService = Depends(get_service)) -> CachedObjects:
    objects = await service.cached_objects()
    if objects is None:
        raise HTTPException(status_code=404, detail="No cached objects found")
    return objects


@router.post("/reload")
async def reload_objects(service: ReadinessService = Depends(get_service)) -> dict[str, bool]:
    try:
        await service.load_cycle()
    except (RestloadError, OSError) as exc:
        logger.error("Auto-load reload failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to reload auto-load objects") from exc
    return {"success": True}
