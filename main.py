import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.dependencies import get_assignment_rules, get_outlet_directory
from app.api.v1.api import api_router
from app.core.config import settings
from app.core.database import init_models
from app.core.logging_config import setup_logging
from app.core.redis import redis_client

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    # Malformed rule tables abort startup with ConfigurationError
    rules = get_assignment_rules()
    directory = get_outlet_directory()
    logger.info(f"Assignment rules loaded: {rules.as_dict()}")
    logger.info(f"Tracking {len(directory.outlets)} outlets: {', '.join(directory.codes())}")

    await init_models()
    yield
    await redis_client.disconnect()

# Create FastAPI app
app_config = {
    "title": "Outlet Operations Backend",
    "description": "Maintenance ticket routing and checklist completion tracking for restaurant outlets",
    "version": "1.0.0",
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": "Outlet Operations Backend",
        "status": "active",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
    }

def run_http(port: int = 9106):
    import uvicorn
    logger.info(f"🚀 Starting HTTP server on port {port}...")
    uvicorn.run(
        "main:app",  # Use string import
        host="0.0.0.0",
        port=port,
        reload=settings.DEBUG
    )

if __name__ == "__main__":
    run_http()
