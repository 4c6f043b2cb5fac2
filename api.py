"""
Travel Accounts FastAPI Application

Main entry point for the customer accounts API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Common library imports
from common.auth import FirebaseAuth
from common.database import MongoDB, StoreUnavailableError, set_main_database
from common.utils import error_response, success_response

# App-specific imports
from travel_auth.config import settings
from travel_auth.dependencies import get_account_store, init_auth_services
from travel_auth.routers import accounts_router

logger = logging.getLogger(__name__)


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Validates configuration, connects the database and initializes services.
    A missing secret or an unreachable database aborts startup.
    """
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Travel Accounts API...")

    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )
    set_main_database(main_db)

    identity_verifier = None
    if settings.federation_enabled():
        identity_verifier = FirebaseAuth(
            credentials_path=settings.FIREBASE_CREDENTIALS_PATH,
            credentials_dict=settings.get_firebase_credentials_dict(),
            project_id=settings.FIREBASE_PROJECT_ID,
            timeout_seconds=settings.FIREBASE_VERIFY_TIMEOUT_SECONDS,
        )
    else:
        logger.warning("Firebase credentials not configured, federated login disabled")

    init_auth_services(settings, identity_verifier=identity_verifier)
    await get_account_store().ensure_indexes()

    logger.info("Travel Accounts API started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Travel Accounts API...")
    set_main_database(None)
    await main_db.disconnect()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="Travel Accounts API",
    description="Customer registration, login and session management",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers (all errors use the standard error envelope)
# =============================================================================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        body = error_response(
            message=detail.get("message", "Error"),
            code=detail.get("code"),
            details=detail.get("details"),
        )
    else:
        body = error_response(message=str(detail))

    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=error_response(
            message="Invalid request",
            code="VALIDATION_ERROR",
            errors=errors,
        ),
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content=error_response(message="Service temporarily unavailable", code="STORE_UNAVAILABLE"),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_response(message="Internal server error", code="INTERNAL_ERROR"),
    )


# =============================================================================
# Include Routers (all under /api/v1 prefix)
# =============================================================================
API_PREFIX = "/api/v1"

app.include_router(accounts_router, prefix=API_PREFIX)


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": "1.0.0",
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
