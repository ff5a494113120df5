import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.config import Settings, settings as default_settings
from app.core.exceptions import PlatformError
from app.database.engine import create_engine
from app.database.record_store import RecordStore
from app.database.schema_sync import SchemaSynchronizer
from app.modules.models import routes as models_routes
from app.modules.models.registry import ModelRegistry
from app.modules.models.service import PublicationService
from app.modules.models.storage import ModelDefinitionStorage
from app.modules.records import routes as records_routes

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build an application with its own registry, engine and services"""
    settings = settings or default_settings

    engine = create_engine(settings)
    registry = ModelRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load every persisted model and synchronize tables before serving"""
        logger.info("Application startup")
        await app.state.publication_service.load_and_synchronize()
        logger.info(f"Models directory: {settings.models_dir}")
        logger.info(f"Database: {settings.database_url}")
        yield
        logger.info("Application shutdown")
        await engine.dispose()

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.state.settings = settings
    app.state.engine = engine
    app.state.registry = registry
    app.state.record_store = RecordStore(engine)
    app.state.publication_service = PublicationService(
        registry,
        ModelDefinitionStorage(settings.models_dir),
        SchemaSynchronizer(engine),
    )

    @app.exception_handler(PlatformError)
    async def platform_exception_handler(request: Request, exc: PlatformError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        if settings.is_production:
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"[Request] {request.method} {request.url.path}")
        return await call_next(request)

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(models_routes.router)
    app.include_router(records_routes.admin_router)
    app.include_router(records_routes.router)

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness check: models loaded into the registry"""
        return {"status": "ready", "models": len(registry)}

    return app


app = create_app()
