"""
FastAPI application entry point for the InvoiceBill backend.

This module creates the FastAPI app instance and registers all routers.
"""

import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.utils.logging import LOG_FORMAT
from backend.routes.auth import router as auth_router
from backend.routes.bank_accounts import router as bank_accounts_router
from backend.routes.customers import router as customers_router
from backend.routes.health import router as health_router
from backend.routes.invoices import router as invoices_router
from backend.routes.items import router as items_router
from backend.routes.messages import router as messages_router
from backend.routes.payments import router as payments_router
from backend.routes.profile import router as profile_router
from backend.routes.quotations import router as quotations_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=LOG_FORMAT
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - ENVIRONMENT=production: CORS_ALLOWED_ORIGINS (none allowed when unset)
    - anything else: all origins

    The React Native app sends no Origin header, so CORS only matters for
    browser clients such as the payment WebView's parent page.
    """
    if settings.is_production():
        origins = settings.CORS_ALLOWED_ORIGINS
        if origins:
            logger.info(f"CORS configured for production with {len(origins)} allowed origins")
        else:
            logger.warning(
                "CORS_ALLOWED_ORIGINS not set in production. "
                "No web origins allowed. Set CORS_ALLOWED_ORIGINS for web clients."
            )
        return origins

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


# Create FastAPI app
app = FastAPI(
    title="InvoiceBill API",
    description="Backend service for the InvoiceBill invoicing and quotation app",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log detailed validation errors; request bodies are not logged (they may hold passwords)."""
    logger.error(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "details": jsonable_errors(exc),
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that are not JSON serializable
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


# Configure CORS with environment-based origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(customers_router)
app.include_router(items_router)
app.include_router(bank_accounts_router)
app.include_router(invoices_router)
app.include_router(quotations_router)
app.include_router(messages_router)
app.include_router(payments_router)

logger.info("FastAPI app initialized successfully")
