"""Main module for the Area Admin service."""

import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from area_admin.api.v1.api import api_router
from area_admin.core.config import Settings, get_settings
from area_admin.services.area_client import create_http_client
from area_admin.services.query_client import QueryClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title=settings.project_name,
    openapi_url=f"{settings.api_v1_str}/openapi.json",
    redirect_slashes=False,  # Disable automatic redirects for trailing slashes
)

# The browser sends the csrftoken cookie along, so credentials must be allowed
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With", settings.csrf_header_name],
    max_age=600,  # Cache preflight requests for 10 minutes
)

app.include_router(api_router, prefix=settings.api_v1_str)


@app.on_event("startup")
async def startup_event():
    """Create the shared query cache and HTTP connection pool."""
    logger.info("Initializing application services...")

    app.state.query_client = QueryClient(
        stale_time=settings.query_stale_time,
        retry=settings.query_retry,
        max_entries=settings.query_max_entries,
    )
    logger.info(
        f"Query cache ready (stale time {settings.query_stale_time}s, retry {settings.query_retry}, "
        f"max {settings.query_max_entries} entries)"
    )

    app.state.http_client = create_http_client(settings)
    logger.info(f"HTTP client ready for {settings.area_api_url}")

    app.state.services_initialized = True


@app.on_event("shutdown")
async def shutdown_event():
    """Release the HTTP connection pool."""
    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()
        logger.info("HTTP client closed")


@app.get("/ping")
async def pong(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Ping the API to check if it's running."""
    return {
        "ping": "pong!",
        "environment": settings.environment,
        "testing": settings.testing,
        "services_initialized": getattr(app.state, "services_initialized", False),
    }
