# app/api/deps.py
from functools import lru_cache

from app.services.access_logger import AccessLogger
from app.services.endpoint_store import SqlEndpointStore
from app.services.gateway import AuthenticationGateway


@lru_cache
def get_endpoint_store() -> SqlEndpointStore:
    return SqlEndpointStore()


@lru_cache
def get_access_logger() -> AccessLogger:
    return AccessLogger()


@lru_cache
def get_gateway() -> AuthenticationGateway:
    return AuthenticationGateway(get_endpoint_store(), get_access_logger())
