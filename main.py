"""
VidShare API - Main Application Entry Point.

This module initializes and configures the FastAPI application for the
VidShare API: a REST backend for a video-sharing platform with user accounts,
channel profiles and video publishing and discovery.

Key Responsibilities:
- Configure and launch the FastAPI application.
- Set up middleware for correlation ids, error handling and request timing.
- Mount the health, user/channel and video routers.
- Create database tables on startup.
"""

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from core.database import create_db_and_tables, engine
from api.user_endpoints import router as user_router
from api.video_endpoints import router as video_router
from api.health_router import health_router, monitoring_router
from core.logging_config import setup_logging, get_logger
from core.middleware import (
    CorrelationMiddleware,
    ErrorHandlingMiddleware,
    PerformanceMiddleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    logger = get_logger("api.startup")
    await create_db_and_tables()
    logger.info("Database initialized successfully")

    yield

    logger.info("Shutting down VidShare API")
    await engine.dispose()


app = FastAPI(
    title="VidShare API",
    description="Video-sharing backend: accounts, channels and video discovery",
    version="1.0.0",
    lifespan=lifespan,
)


# Added last runs first: correlation id is set before errors are rendered
app.add_middleware(PerformanceMiddleware)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(CorrelationMiddleware)

# Outermost, so error responses carry CORS headers too
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health routers first (no authentication required for monitoring)
app.include_router(health_router)
app.include_router(monitoring_router)

app.include_router(user_router)
app.include_router(video_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
        log_level="info",
    )
