"""
Tabletop Codex API service.

Mounts one router per entity, maps domain errors to HTTP status codes and
creates the database tables on startup.
"""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import routers
from .config import settings
from .database import create_tables
from .errors import TabletopError

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Translate exceptions into the ``{"error": ...}`` envelope."""

    @app.exception_handler(TabletopError)
    async def handle_domain_error(request: Request, exc: TabletopError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# FastAPI app
app = FastAPI(
    title="Tabletop Codex",
    description="CRUD API for tabletop characters, items, races, archetypes, skills, tags, users and images",
    version="1.0.0",
)

register_error_handlers(app)

for router in routers:
    app.include_router(router)


@app.on_event("startup")
async def startup_event():
    """Initialize service on startup."""
    create_tables()
    logger.info("Tabletop Codex service started")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "tabletop",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
