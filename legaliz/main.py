import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import structlog

from .config import settings
from .db import Base, engine
from .errors import register_exception_handlers
from .logging import setup_logging, RequestIdMiddleware
from .models import models  # noqa: F401  registers tables on Base.metadata
from .auth.router import router as auth_router
from .routes.cases import router as cases_router
from .routes.clients import router as clients_router
from .routes.schedules import router as schedules_router
from .routes.users import router as users_router, profile_router
from .routes.dashboard import router as dashboard_router


logger = structlog.get_logger(__name__)

# React build output (SPA); served only when present
FRONT_DIST = os.path.join("frontend", "build")


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    # Middlewares
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_exception_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(cases_router)
    app.include_router(clients_router)
    app.include_router(schedules_router)
    app.include_router(users_router)
    app.include_router(profile_router)
    app.include_router(dashboard_router)

    # Metrics
    if settings.enable_metrics:
        Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        logger.info("startup", environment=settings.environment)
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
            logger.info("startup_tables_verified", tables=sorted(Base.metadata.tables.keys()))

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    # After all API routers, provide SPA catch-all for deep links
    if os.path.isdir(FRONT_DIST):
        INDEX_PATH = os.path.join(FRONT_DIST, "index.html")

        @app.get("/{full_path:path}", include_in_schema=False)
        def spa_fallback(full_path: str):
            # If a built asset exists, serve it; otherwise serve index.html
            root = os.path.realpath(FRONT_DIST)
            asset_path = os.path.realpath(os.path.join(root, full_path))
            if full_path and asset_path.startswith(root + os.sep) and os.path.isfile(asset_path):
                return FileResponse(asset_path, headers={"Cache-Control": "public, max-age=3600"})
            # For SPA routes like /cases/12, serve index.html with no-cache
            return FileResponse(INDEX_PATH, headers={"Cache-Control": "no-cache, no-store, must-revalidate"})

    return app


app = create_app()
