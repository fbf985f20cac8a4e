import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.container import build_container
from app.core.config import settings
from app.core.database import init_db
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.api.endpoints import auth, health

setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    logger.info("Starting up Portfolio Auth Service...")
    init_db()

    # Tests install their own container before startup
    if getattr(app.state, "container", None) is None:
        app.state.container = build_container(settings)
        logger.info(f"Services wired (rate limit backend: {settings.RATE_LIMIT_BACKEND})")

    yield

    logger.info("Shutting down Portfolio Auth Service...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Authentication service for the portfolio platform",
    lifespan=lifespan
)
app.state.container = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router, prefix=settings.API_V1_STR)
app.include_router(health.router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    """Root endpoint - service banner"""
    return {
        "message": "Portfolio Auth Service",
        "version": "1.0.0",
        "status": "healthy"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
