# app/api/v1/endpoints/urls.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from app.api.deps import get_access_logger, get_endpoint_store
from app.core.security import get_current_owner
from app.schemas.access_log import EndpointDetailResponse
from app.schemas.endpoint import (
    AuthType,
    EndpointCreateRequest,
    EndpointCreateResponse,
    EndpointListResponse,
    EndpointRecord,
    EndpointResponse,
    EndpointUpdateRequest,
)
from app.services.access_logger import AccessLogger
from app.services.endpoint_store import SqlEndpointStore
from app.services.gateway import prepare_auth_config
from app.services.url_generator import endpoint_url

logger = logging.getLogger(__name__)

router = APIRouter()


def _config_error(auth_type: AuthType, error: Exception) -> HTTPException:
    # field locations only: pydantic error payloads echo the submitted secrets
    if isinstance(error, ValidationError):
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in error.errors()})
        detail = f"Invalid auth_config for {auth_type.value}: check {', '.join(fields)}"
    else:
        detail = f"Invalid auth_config for {auth_type.value}: {error}"
    return HTTPException(status_code=400, detail=detail)


async def _owned_endpoint(url_id: str, owner_id: str, store: SqlEndpointStore) -> EndpointRecord:
    endpoint = await store.get(url_id, use_cache=False)
    if endpoint is None:
        raise HTTPException(status_code=404, detail="URL not found")
    if endpoint.owner_id != owner_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return endpoint


@router.get("", response_model=EndpointListResponse)
async def list_urls(
    owner_id: str = Depends(get_current_owner),
    store: SqlEndpointStore = Depends(get_endpoint_store),
):
    records = await store.list_for_owner(owner_id)
    return EndpointListResponse(urls=[EndpointResponse.model_validate(r) for r in records])


@router.post("", response_model=EndpointCreateResponse)
async def create_url(
    payload: EndpointCreateRequest,
    owner_id: str = Depends(get_current_owner),
    store: SqlEndpointStore = Depends(get_endpoint_store),
):
    try:
        auth_config, credentials = await prepare_auth_config(payload.auth_type, payload.auth_config)
    except (ValidationError, ValueError) as e:
        raise _config_error(payload.auth_type, e)

    try:
        record = await store.create(
            owner_id,
            payload.name,
            payload.auth_type,
            auth_config,
            description=payload.description,
        )
    except Exception as e:
        logger.error(f"Failed to create URL: {e}")
        raise HTTPException(status_code=500, detail="Failed to create URL")

    return EndpointCreateResponse(
        url=EndpointResponse.model_validate(record),
        endpoint=endpoint_url(record.id),
        credentials=credentials,
    )


@router.get("/{url_id}", response_model=EndpointDetailResponse)
async def get_url(
    url_id: str,
    owner_id: str = Depends(get_current_owner),
    store: SqlEndpointStore = Depends(get_endpoint_store),
    access_logger: AccessLogger = Depends(get_access_logger),
):
    endpoint = await _owned_endpoint(url_id, owner_id, store)
    access_logs = await access_logger.list_for_endpoint(url_id)
    return EndpointDetailResponse(url=EndpointResponse.model_validate(endpoint), access_logs=access_logs)


@router.put("/{url_id}")
async def update_url(
    url_id: str,
    payload: EndpointUpdateRequest,
    owner_id: str = Depends(get_current_owner),
    store: SqlEndpointStore = Depends(get_endpoint_store),
):
    endpoint = await _owned_endpoint(url_id, owner_id, store)

    update_data = payload.model_dump(exclude_none=True)
    if not update_data:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    if "auth_config" in update_data:
        # auth_type is fixed at creation; the new config must fit it
        auth_type = AuthType(endpoint.auth_type)
        try:
            update_data["auth_config"], _ = await prepare_auth_config(auth_type, update_data["auth_config"])
        except (ValidationError, ValueError) as e:
            raise _config_error(auth_type, e)

    try:
        updated = await store.update(url_id, update_data)
    except Exception as e:
        logger.error(f"Failed to update URL {url_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update URL")
    if updated is None:
        raise HTTPException(status_code=404, detail="URL not found")

    return {"message": "URL updated successfully"}


@router.delete("/{url_id}")
async def delete_url(
    url_id: str,
    owner_id: str = Depends(get_current_owner),
    store: SqlEndpointStore = Depends(get_endpoint_store),
):
    await _owned_endpoint(url_id, owner_id, store)

    try:
        await store.delete(url_id)
    except Exception as e:
        logger.error(f"Failed to delete URL {url_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete URL")

    return {"message": "URL deleted successfully"}
