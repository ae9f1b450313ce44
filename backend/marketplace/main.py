"""
Marketplace backend application.

``create_app`` builds the FastAPI app, mounts the GraphQL router at
``/graphql`` and exposes ``/health``. Collaborators passed to ``create_app``
are used as-is; anything missing is created in the lifespan from settings and
closed again on shutdown.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from strawberry.fastapi import GraphQLRouter

from marketplace.core.config import Settings, get_settings
from marketplace.core.database import ConnectionManager, SessionManager
from marketplace.core.enums import SessionBackend
from marketplace.core.logging import (
    LogConfig,
    clear_context,
    configure_logging,
    get_logger,
    log_context,
)
from marketplace.core.security import PasswordHasher
from marketplace.modules.identity.infrastructure.geocoding import Geocoder, create_geocoder
from marketplace.modules.identity.infrastructure.session_store import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionStore,
)
from marketplace.presentation.graphql.context import get_context
from marketplace.presentation.graphql.schema import create_schema

logger = get_logger(__name__)


def _create_session_store(settings: Settings) -> SessionStore:
    if settings.session.backend == SessionBackend.MEMORY:
        return InMemorySessionStore()
    return RedisSessionStore(
        redis_url=settings.session.redis_url,
        key_prefix=settings.session.key_prefix,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Create missing collaborators on startup and release the ones created here."""
    state = app.state
    settings: Settings = state.settings
    owned = []

    logger.info(
        "Starting marketplace backend",
        version=settings.app_version,
        environment=settings.environment.value,
        database=settings.database.to_dict(),
    )

    if state.connection_manager is None:
        connections = ConnectionManager(settings.database)
        await connections.initialize()
        if settings.database.is_sqlite:
            await connections.create_all()
        state.connection_manager = connections
        state.session_manager = SessionManager(connections.engine)
        owned.append(connections.shutdown)

    if state.session_store is None:
        state.session_store = _create_session_store(settings)
        owned.append(state.session_store.close)

    if state.geocoder is None:
        state.geocoder = create_geocoder(settings.geocoding)
        if hasattr(state.geocoder, "close"):
            owned.append(state.geocoder.close)

    yield

    for close in reversed(owned):
        try:
            await close()
        except Exception:
            logger.exception("Shutdown step failed")
    logger.info("Marketplace backend stopped")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request with its request id."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        clear_context()
        log_context(request_id=request_id, path=request.url.path)
        try:
            response: Response = await call_next(request)
        finally:
            clear_context()
        response.headers["X-Request-ID"] = request_id
        return response


def create_app(
    settings: Settings | None = None,
    *,
    connection_manager: ConnectionManager | None = None,
    session_store: SessionStore | None = None,
    geocoder: Geocoder | None = None,
    hasher: PasswordHasher | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings, defaults to ``get_settings()``
        connection_manager: Initialized database connections
        session_store: Server-side session storage
        geocoder: Address geocoder
        hasher: Password hasher

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    log_config = LogConfig(
        level=settings.log_level,
        format=settings.log_format,
        environment=settings.environment,
    )
    configure_logging(log_config)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.hasher = hasher or PasswordHasher(settings.security)
    app.state.connection_manager = connection_manager
    app.state.session_manager = (
        SessionManager(connection_manager.engine) if connection_manager else None
    )
    app.state.session_store = session_store
    app.state.geocoder = geocoder

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    graphql_app = GraphQLRouter(
        create_schema(),
        graphql_ide="graphiql" if settings.debug else None,
        context_getter=get_context,
    )
    app.include_router(graphql_app, prefix="/graphql")

    @app.get("/health")
    async def health_check():
        connections: ConnectionManager | None = app.state.connection_manager
        database = await connections.check_health() if connections else {"healthy": False}
        return {
            "status": "healthy" if database["healthy"] else "degraded",
            "version": settings.app_version,
            "environment": settings.environment.value,
            "database": database,
        }

    logger.info("Application configured", graphql_path="/graphql")
    return app
