"""
CartGenie - Main FastAPI Application
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .api import (
    auth_router,
    password_reset_router,
    userdata_router,
    products_router,
    ocr_router,
    blood_test_router,
    consult_router,
    history_router,
)
from .core.logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .services.ocr_engine import configure_tesseract
from .storage import INDEXES, close_document_store, create_document_store, init_document_store

# Logger will be initialized after setup_logging() is called
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging(settings)

    store = init_document_store(create_document_store(settings))
    await store.ping()
    await store.ensure_indexes(INDEXES)
    configure_tesseract(settings.tesseract_cmd)

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Storage: {settings.storage_type}")
    logger.info(f"LLM provider: {settings.llm_provider}")
    logger.info(f"Log level: {settings.log_level.upper()}")
    logger.info(f"Debug mode: {settings.debug}")
    yield
    # Shutdown
    await close_document_store()
    logger.info(f"Shutting down {settings.app_name}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Grocery assistant that checks products and carts against a user's health profile",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware (after CORS)
if settings.log_api_requests:
    app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = f"Invalid {field}: {first.get('msg')}" if field else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": message, "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"extra_fields": {"path": request.url.path, "error_type": type(exc).__name__}}
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Server error"},
    )


# Include routers
app.include_router(auth_router, prefix="/api")
app.include_router(password_reset_router, prefix="/api")
app.include_router(userdata_router, prefix="/api")
app.include_router(products_router, prefix="/api")
app.include_router(ocr_router, prefix="/api")
app.include_router(blood_test_router, prefix="/api")
app.include_router(consult_router, prefix="/api")
app.include_router(history_router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "message": "Welcome to CartGenie - shop with your health in mind"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "ok": True,
        "message": "CartGenie API is running",
        "storage": settings.storage_type,
        "version": settings.app_version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cartgenie.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
