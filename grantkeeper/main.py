# grantkeeper/main.py (async version)

import logging
import asyncio
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.openapi.utils import get_openapi
from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import async_sessionmaker

from grantkeeper.adapters.configuration.config import settings
from grantkeeper.adapters.outbound.cache.client_cache import ClientCache
from grantkeeper.adapters.outbound.delivery.connection_registry import ConnectionRegistry
from grantkeeper.adapters.outbound.persistence.database import AsyncSessionLocal, create_tables, engine
from grantkeeper.adapters.outbound.persistence.repositories import (
    ClientRepository,
    GrantRepository,
    NotificationRepository,
    SessionRepository,
)
from grantkeeper.application.use_cases import (
    ClientRegistryService,
    CodeExchangeService,
    NotificationFanoutService,
)
from grantkeeper.domain.exceptions import StoreUnavailableError

# ─── UNIQUE LOGGING CONFIGURATION ─────────────────────────────────────────────────
level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL, logging.INFO)
logging.basicConfig(
    level=level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────────────────────


def build_services(app: FastAPI, session_factory: async_sessionmaker) -> None:
    """
    Build the stores and use cases and attach them to ``app.state``.

    Everything with state (the connection registry, the client cache) is
    created here, once per application.
    """
    app.state.grant_store = GrantRepository(session_factory)
    app.state.session_store = SessionRepository(session_factory)
    app.state.client_repository = ClientRepository(session_factory)
    app.state.notification_repository = NotificationRepository(session_factory)

    app.state.connection_registry = ConnectionRegistry(shard_count=settings.CONNECTION_REGISTRY_SHARDS)
    app.state.client_registry = ClientRegistryService(
        app.state.client_repository,
        app.state.grant_store,
        ClientCache(ttl=settings.CLIENT_CACHE_TTL_SECONDS),
    )
    app.state.notification_service = NotificationFanoutService(
        app.state.notification_repository,
        app.state.connection_registry,
        delivery_timeout=settings.DELIVERY_TIMEOUT_SECONDS,
    )
    app.state.code_exchange = CodeExchangeService(
        app.state.grant_store,
        app.state.client_registry,
        access_token_ttl=timedelta(seconds=settings.ACCESS_TOKEN_TTL_SECONDS),
        refresh_token_ttl=timedelta(seconds=settings.REFRESH_TOKEN_TTL_SECONDS),
        authorization_code_ttl=timedelta(seconds=settings.AUTHORIZATION_CODE_TTL_SECONDS),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Async context manager to handle startup and shutdown events.
    """
    # Startup
    logger.info("Application starting up...")

    # Create database tables if they don't exist
    await create_tables(engine)

    build_services(app, AsyncSessionLocal)

    # Start background tasks
    app.state.sweep_task = asyncio.create_task(periodic_sweep(app))

    yield

    # Shutdown
    logger.info("Application shutting down...")
    app.state.sweep_task.cancel()
    try:
        await app.state.sweep_task
    except asyncio.CancelledError:
        pass
    await engine.dispose()


# Create FastAPI instance
app = FastAPI(
    title="grantkeeper",
    description="OIDC grant, client and session stores with real-time notification fan-out",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# Middlewares
from grantkeeper.shared.middleware import (
    AsyncExceptionMiddleware,
    AsyncRequestLoggingMiddleware,
)

app.add_middleware(AsyncRequestLoggingMiddleware)
app.add_middleware(AsyncExceptionMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
from grantkeeper.adapters.inbound.api.v1.router import api_router as api_v1_router

app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def redirect_to_docs():
    return RedirectResponse(url="/docs")


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    spec = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    # Remove unwanted schemas and 422 responses
    for schema in ("HTTPValidationError", "ValidationError"):
        spec.get("components", {}).get("schemas", {}).pop(schema, None)

    for path in spec.get("paths", {}).values():
        for op in path.values():
            op.get("responses", {}).pop("422", None)

    app.openapi_schema = spec
    return spec


app.openapi = custom_openapi


# ── EXPIRED GRANT AND SESSION SWEEP ───────────────────────────────────────────
async def sweep_expired(app: FastAPI) -> Optional[dict]:
    """Delete expired grants and sessions. Returns the counts, or None if the store failed."""
    try:
        grants = await app.state.grant_store.sweep_expired()
        sessions = await app.state.session_store.sweep_expired()
    except StoreUnavailableError as e:
        logger.error(f"Sweep of expired grants and sessions failed: {e}")
        return None

    logger.info(f"Swept {grants} expired grant(s) and {sessions} expired session(s)")
    return {"grants": grants, "sessions": sessions}


async def periodic_sweep(app: FastAPI):
    """Background task that periodically sweeps expired grants and sessions."""
    while True:
        try:
            await asyncio.sleep(settings.SWEEP_INTERVAL_SECONDS)
            await sweep_expired(app)
        except asyncio.CancelledError:
            logger.info("Sweep task cancelled")
            break
        except Exception as e:
            logger.exception(f"Error in sweep_expired: {e}")
