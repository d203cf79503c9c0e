# app/services/endpoint_store.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import delete, update
from sqlalchemy.future import select

from app.core.config import settings
from app.db.database import async_session
from app.models.access_log import AccessLog
from app.models.endpoint import ProtectedEndpoint
from app.schemas.endpoint import AuthType, EndpointRecord
from app.services.cache import TTLCache
from app.services.url_generator import generate_url_id

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "is_active", "auth_config")


class EndpointStore(Protocol):
    """What the gateway needs from endpoint storage."""

    async def get(self, endpoint_id: str) -> Optional[EndpointRecord]:
        ...

    async def increment_access_count(self, endpoint_id: str) -> None:
        ...


class SqlEndpointStore:
    """Endpoint records in the SQL database, with a read-through cache on ``get``."""

    def __init__(self, session_factory=async_session, cache_ttl: Optional[float] = None):
        self.session_factory = session_factory
        ttl = settings.ENDPOINT_CACHE_TTL_SECONDS if cache_ttl is None else cache_ttl
        self.cache = TTLCache(ttl) if ttl > 0 else None

    async def get(self, endpoint_id: str, use_cache: bool = True) -> Optional[EndpointRecord]:
        if use_cache and self.cache is not None:
            cached = self.cache.get(endpoint_id)
            if cached is not None:
                return cached

        async with self.session_factory() as session:
            row = await session.get(ProtectedEndpoint, endpoint_id)
            if row is None:
                return None
            record = EndpointRecord.model_validate(row)

        if self.cache is not None:
            self.cache.set(endpoint_id, record)
        return record

    async def increment_access_count(self, endpoint_id: str) -> None:
        # single UPDATE so concurrent successes never lose an increment
        stmt = (
            update(ProtectedEndpoint)
            .where(ProtectedEndpoint.id == endpoint_id)
            .values(
                access_count=ProtectedEndpoint.access_count + 1,
                last_accessed_at=datetime.now(timezone.utc),
            )
        )
        async with self.session_factory() as session:
            await session.execute(stmt)
            await session.commit()

    async def create(
        self,
        owner_id: str,
        name: str,
        auth_type: AuthType,
        auth_config: Dict[str, Any],
        description: str = "",
    ) -> EndpointRecord:
        endpoint = ProtectedEndpoint(
            id=generate_url_id(),
            owner_id=owner_id,
            name=name,
            description=description or "",
            auth_type=AuthType(auth_type).value,
            auth_config=auth_config,
            is_active=True,
            access_count=0,
            created_at=datetime.now(timezone.utc),
        )
        async with self.session_factory() as session:
            try:
                session.add(endpoint)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            record = EndpointRecord.model_validate(endpoint)

        logger.info(f"Created {record.auth_type} endpoint {record.id} for owner {owner_id}")
        return record

    async def list_for_owner(self, owner_id: str) -> List[EndpointRecord]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ProtectedEndpoint)
                .where(ProtectedEndpoint.owner_id == owner_id)
                .order_by(ProtectedEndpoint.created_at.desc())
            )
            return [EndpointRecord.model_validate(row) for row in result.scalars().all()]

    async def update(self, endpoint_id: str, fields: Dict[str, Any]) -> Optional[EndpointRecord]:
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"fields cannot be updated: {sorted(unknown)}")

        async with self.session_factory() as session:
            row = await session.get(ProtectedEndpoint, endpoint_id)
            if row is None:
                return None
            try:
                for field, value in fields.items():
                    setattr(row, field, value)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            record = EndpointRecord.model_validate(row)

        self._invalidate(endpoint_id)
        return record

    async def delete(self, endpoint_id: str) -> bool:
        """Delete an endpoint together with its access logs."""
        async with self.session_factory() as session:
            try:
                await session.execute(delete(AccessLog).where(AccessLog.endpoint_id == endpoint_id))
                result = await session.execute(
                    delete(ProtectedEndpoint).where(ProtectedEndpoint.id == endpoint_id)
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        self._invalidate(endpoint_id)
        return result.rowcount > 0

    def _invalidate(self, endpoint_id: str) -> None:
        if self.cache is not None:
            self.cache.delete(endpoint_id)
