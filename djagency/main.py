"""
DJ Agency - FastAPI Application

Booking portal for a DJ talent agency: roster, producers, events,
contracts and payments.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from djagency.core.config import settings
from djagency.core.database import engine
from djagency.core.errors import DomainError
from djagency.routers.auth import router as auth_router, functions_router
from djagency.routers.contracts import router as contracts_router
from djagency.routers.djs import router as djs_router
from djagency.routers.events import router as events_router
from djagency.routers.financial import router as financial_router, analytics_router
from djagency.routers.media import router as media_router
from djagency.routers.payments import router as payments_router
from djagency.routers.producers import router as producers_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    if not settings.supabase_configured:
        logger.warning("Supabase is not configured: auth and storage endpoints will return 503")
    yield
    # Cleanup on shutdown
    await engine.dispose()


app = FastAPI(
    title="DJ Agency",
    description="Booking portal for a DJ talent agency",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.kind.value},
    )


# Include routers
app.include_router(auth_router)
app.include_router(functions_router)
app.include_router(djs_router)
app.include_router(media_router)
app.include_router(producers_router)
app.include_router(events_router)
app.include_router(contracts_router)
app.include_router(payments_router)
app.include_router(financial_router)
app.include_router(analytics_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "DJ Agency",
        "version": "0.1.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "supabase_configured": settings.supabase_configured,
    }
