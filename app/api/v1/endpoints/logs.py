# app/api/v1/endpoints/logs.py
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_access_logger
from app.core.security import get_current_owner
from app.schemas.access_log import AccessLogListResponse
from app.services.access_logger import AccessLogger

router = APIRouter()

@router.get("", response_model=AccessLogListResponse)
async def list_access_logs(
    limit: int = Query(200, ge=1, le=1000),
    owner_id: str = Depends(get_current_owner),
    access_logger: AccessLogger = Depends(get_access_logger),
):
    logs = await access_logger.list_for_owner(owner_id, limit=limit)
    return AccessLogListResponse(logs=logs, total=len(logs))
