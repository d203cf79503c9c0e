# app/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from contextlib import asynccontextmanager
from app.api.v1.api import api_router, admin_router
from app.db.database import create_db_and_tables
from app.core.config import settings
import time
import logging

#logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up...")
    await create_db_and_tables()
    yield
    logger.info("Shutting down...")

app = FastAPI(
    lifespan=lifespan,
    title="Protected URL Gateway",
    description="Issue protected URLs guarded by password, basic, API key or OAuth authentication",
    version="1.0.0"
)

#middleware security
app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])

#CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=86400,  # 24 hours
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Log slow requests
    if process_time > 10:
        logger.warning(f"Slow request: {request.method} {request.url.path} took {process_time:.2f}s")

    return response

#public gateway + owner admin API
app.include_router(api_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/admin")

#health check
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": "1.0.0"
    }

#root
@app.get("/")
async def root():
    return {
        "message": "Protected URL Gateway",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
