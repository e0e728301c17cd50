"""
Approval Flow - FastAPI Application

Wires the HTTP surface to the approval engine:

    /api/v1/templates   template management (admin writes)
    /api/v1/requests    launching requests, decisions, comments, cancellation
    /api/v1/directory   role names and management chains
    /health             store connectivity
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from .config.settings import settings
from .api.routes import api_router
from .api.deps import get_store
from .api.middleware import CorrelationIdMiddleware, CORRELATION_HEADER, register_error_handlers
from .repositories.base import ApprovalStore
from .repositories.mongo_client import create_indexes, close_connection
from .utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)

APP_NAME = "Approval Flow"
APP_VERSION = "1.0.0"
API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure MongoDB indexes on startup and release the client on shutdown."""
    logger.info(f"Starting {APP_NAME} {APP_VERSION} ({settings.environment})")

    try:
        create_indexes()
    except PyMongoError as e:
        # Keep serving; /health reports the store as degraded
        logger.error(f"Index creation failed: {e}")

    yield

    close_connection()
    logger.info(f"{APP_NAME} stopped")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Build the application.

    Args:
        use_lifespan: Run the MongoDB startup / shutdown hooks; tests that
            swap the store for an in-memory one turn this off.
    """
    docs_enabled = settings.debug and not settings.is_production
    application = FastAPI(
        title=APP_NAME,
        description="Multi-step approval workflows with role-based and dynamic approver assignment",
        version=APP_VERSION,
        lifespan=lifespan if use_lifespan else None,
        docs_url=f"{API_PREFIX}/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json" if docs_enabled else None,
    )

    _add_middleware(application)
    register_error_handlers(application)
    application.include_router(api_router, prefix=API_PREFIX)
    _add_health_routes(application)

    return application


def _add_middleware(app: FastAPI) -> None:
    # Browsers refuse credentials with a wildcard origin
    allow_all = settings.cors_origins.strip() == "*"
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )
    app.add_middleware(CorrelationIdMiddleware)


def _add_health_routes(app: FastAPI) -> None:

    @app.get("/health", tags=["Health"])
    async def health(store: ApprovalStore = Depends(get_store)):
        """Unauthenticated liveness plus store connectivity."""
        store_health = store.health_check()
        return {
            "status": "healthy" if store_health.get("status") == "healthy" else "degraded",
            "version": APP_VERSION,
            "environment": settings.environment,
            "store": store_health
        }

    @app.get("/", tags=["Health"])
    async def root():
        return {"name": APP_NAME, "version": APP_VERSION, "api": API_PREFIX}


app = create_app()
