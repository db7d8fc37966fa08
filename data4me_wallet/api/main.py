"""FastAPI application factory"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import sessionmaker
from starlette.responses import Response

from data4me_wallet.api.errors import register_exception_handlers
from data4me_wallet.api.middleware import RequestIDMiddleware, MetricsMiddleware
from data4me_wallet.api.v1 import admin, auth, funding, purchases, telegram, users
from data4me_wallet.config import Settings, get_settings
from data4me_wallet.infrastructure.database.session import build_engine, build_session_factory
from data4me_wallet.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(get_settings().log_level, get_settings().service_name)


def create_app(settings: Optional[Settings] = None, session_factory: Optional[sessionmaker] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Tests pass their own settings and session factory; otherwise both are
    built from the environment.
    """
    settings = settings or get_settings()
    engine = None
    if session_factory is None:
        engine = build_engine(settings)
        session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title="DATA4ME Wallet",
        description="Prepaid wallet for data bundles and airtime",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = session_factory

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(telegram.router, prefix="/v1", tags=["telegram"])
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(funding.router, prefix="/v1", tags=["funding"])
    app.include_router(purchases.router, prefix="/v1", tags=["purchases"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])

    return app


app = create_app()
