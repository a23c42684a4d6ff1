"""
FastAPI main application for the Local Library Catalog API.
"""

from contextlib import asynccontextmanager
from datetime import datetime

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import database as api_database
from api.config import config as api_config
from api.models import ErrorResponse, HealthResponse
from api.routes import router
from catalog.database import CatalogDatabase
from catalog.errors import CatalogError, ConflictError, FormValidationError
from utilities.config import config
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Local Library Catalog API")

    db = CatalogDatabase(config.mongodb_url, config.mongodb_database)
    try:
        await db.connect()
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise
    api_database.db_service = db

    yield

    # Shutdown
    logger.info("Shutting down Local Library Catalog API")
    api_database.db_service = None
    await db.disconnect()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description="""
    A REST API for a library catalog of books, authors, genres and book copies.

    ## Features

    * **Dashboard**: record counts for the whole catalog
    * **Books, Authors, Genres, Book copies**: list, detail, create, update and delete
    * **Referential integrity**: authors, genres and books that are still referenced cannot be deleted

    Create and update endpoints accept JSON or form-encoded bodies.
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)

app.include_router(router)


# Exception handlers
@app.exception_handler(FormValidationError)
async def form_validation_handler(request: Request, exc: FormValidationError):
    """Echo the unsaved entity with the first message for each invalid field."""
    content = {}
    if exc.echo is not None:
        content[exc.entity] = exc.echo
    content["error"] = exc.errors
    logger.info("Form validation failed", path=request.url.path, errors=exc.errors)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    """Handle delete guards and duplicate names."""
    logger.info("Request conflicts with existing records", path=request.url.path, reason=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": {exc.key: exc.message}})


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Handle not-found lookups and data store failures."""
    if exc.status_code >= 500:
        logger.error("Catalog store failure", error=exc.message, path=request.url.path)
        message = "Internal server error"
        detail = exc.message if api_config.debug else None
    else:
        message = exc.message
        detail = None
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=message,
            detail=detail,
            status_code=exc.status_code
        ).model_dump()
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.detail,
            status_code=exc.status_code
        ).model_dump(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if api_database.db_service:
        health_info = await api_database.db_service.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.utcnow(),
        version=api_config.api_version,
        database_status=db_status
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
