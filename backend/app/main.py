"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import (
    admin_inquiries,
    auth,
    billing,
    blogs,
    dashboard,
    inquiries,
    news,
    projects,
    stripe,
    testimonials,
)
from app.config import settings
from app.database import DocumentStore
from app.errors import register_exception_handlers
from app.middleware.request_logging import RequestLoggingMiddleware
from app.services.blob_service import AssetStorage
from app.services.payment_gateway import StripeGateway
from app.utils.logging import get_logger, setup_logging

# Setup logging
setup_logging(debug=settings.debug)
logger = get_logger("main")


def create_app(
    store: Optional[DocumentStore] = None,
    assets: Optional[AssetStorage] = None,
    payments: Optional[StripeGateway] = None,
) -> FastAPI:
    """Build the application around its three external collaborators."""
    store = store or DocumentStore()
    assets = assets or AssetStorage()
    payments = payments or StripeGateway()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.connect()
        await store.ensure_indexes()
        logger.info("application_started", environment=settings.environment)
        yield
        await store.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Architecture studio API: inquiries, bookings and site content",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.store = store
    app.state.assets = assets
    app.state.payments = payments

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Public funnel and payments
    app.include_router(inquiries.router, prefix="/api/inquiries", tags=["Inquiries"])
    app.include_router(stripe.router, prefix="/api/stripe", tags=["Stripe"])
    app.include_router(billing.router, prefix="/api/billing", tags=["Billing"])

    # Content
    app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
    app.include_router(projects.admin_router, prefix="/api/admin/projects", tags=["Admin"])
    app.include_router(blogs.router, prefix="/api/blogs", tags=["Blogs"])
    app.include_router(blogs.admin_router, prefix="/api/admin/blogs", tags=["Admin"])
    app.include_router(news.router, prefix="/api/news", tags=["News"])
    app.include_router(news.admin_router, prefix="/api/admin/news", tags=["Admin"])
    app.include_router(testimonials.router, prefix="/api/testimonials", tags=["Testimonials"])
    app.include_router(testimonials.admin_router, prefix="/api/admin/testimonials", tags=["Admin"])

    # Back office
    app.include_router(admin_inquiries.router, prefix="/api/admin/inquiries", tags=["Admin"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])

    @app.get("/", tags=["Health"])
    async def root():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Detailed health check."""
        database_ok = await store.ping()
        return {
            "status": "healthy" if database_ok else "degraded",
            "mongodb": "connected" if database_ok else "unavailable",
            "assets": "configured" if assets.configured else "not_configured",
            "payments": "configured" if payments.api_key else "not_configured",
        }

    return app


app = create_app()
