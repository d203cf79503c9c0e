# app/schemas/access_log.py
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from app.schemas.endpoint import EndpointResponse

class AccessLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    endpoint_id: str
    timestamp: Optional[datetime] = None
    success: bool
    auth_method: str
    ip_address: str = "unknown"
    user_agent: str = "unknown"

class EndpointDetailResponse(BaseModel):
    url: EndpointResponse
    access_logs: List[AccessLogEntry]

class AccessLogListResponse(BaseModel):
    logs: List[AccessLogEntry]
    total: int
