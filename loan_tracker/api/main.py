"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from loan_tracker.api.dependencies import AuthenticatorRegistry
from loan_tracker.api.middleware import RequestIDMiddleware, MetricsMiddleware, SessionCookieMiddleware
from loan_tracker.api.v1 import installments, session
from loan_tracker.infrastructure.observability.logging import setup_logging
from loan_tracker.config import settings

# Setup structured logging
setup_logging(settings.log_level, service=settings.service_name)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Loan Tracker",
        description="PIN-gated tracker for a fixed-installment personal loan",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.authenticators = AuthenticatorRegistry()

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(
        SessionCookieMiddleware,
        cookie_name=settings.session_cookie_name,
        max_age=settings.session_cookie_max_age_seconds,
    )
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(session.router, prefix="/v1", tags=["session"])
    app.include_router(installments.router, prefix="/v1", tags=["installments"])

    return app


app = create_app()
