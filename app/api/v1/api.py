# app/api/v1/api.py
from fastapi import APIRouter
from .endpoints import gateway, urls, logs

api_router = APIRouter()
api_router.include_router(gateway.router, tags=["Protected URLs"])

admin_router = APIRouter()
admin_router.include_router(urls.router, prefix="/urls", tags=["Admin: URLs"])
admin_router.include_router(logs.router, prefix="/logs", tags=["Admin: Access logs"])
