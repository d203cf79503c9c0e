# app/services/access_logger.py
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.future import select

from app.db.database import async_session
from app.models.access_log import AccessLog
from app.models.endpoint import ProtectedEndpoint
from app.schemas.access_log import AccessLogEntry
from app.schemas.gateway import UNKNOWN


class AccessLogger:
    """Append-only record of every gateway attempt."""

    def __init__(self, session_factory=async_session):
        self.session_factory = session_factory

    async def record(
        self,
        endpoint_id: str,
        success: bool,
        auth_method: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        entry = AccessLog(
            endpoint_id=endpoint_id,
            timestamp=datetime.now(timezone.utc),
            success=success,
            auth_method=auth_method or UNKNOWN,
            ip_address=ip_address or UNKNOWN,
            user_agent=user_agent or UNKNOWN,
        )
        async with self.session_factory() as session:
            try:
                session.add(entry)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def list_for_endpoint(self, endpoint_id: str, limit: int = 50) -> List[AccessLogEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AccessLog)
                .where(AccessLog.endpoint_id == endpoint_id)
                .order_by(AccessLog.timestamp.desc(), AccessLog.id.desc())
                .limit(limit)
            )
            return [AccessLogEntry.model_validate(row) for row in result.scalars().all()]

    async def list_for_owner(self, owner_id: str, limit: int = 200) -> List[AccessLogEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(AccessLog)
                .join(ProtectedEndpoint, ProtectedEndpoint.id == AccessLog.endpoint_id)
                .where(ProtectedEndpoint.owner_id == owner_id)
                .order_by(AccessLog.timestamp.desc(), AccessLog.id.desc())
                .limit(limit)
            )
            return [AccessLogEntry.model_validate(row) for row in result.scalars().all()]
