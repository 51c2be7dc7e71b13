"""FastAPI application for the prenatal chat backend.

``create_app`` builds the application from a PrenatalChatConfig: routers,
middleware and exception handlers. Store and AI service clients are
opened by the lifespan and kept on ``app.state``.
"""

import logging
import sys
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("prenatal_chat").setLevel(logging.INFO)

from prenatal_chat import __version__
from prenatal_chat.api.middleware.rate_limit import RateLimiter, enforce_rate_limit
from prenatal_chat.api.middleware.request_logging import log_requests
from prenatal_chat.api.middleware.security_headers import add_security_headers
from prenatal_chat.api.routes import chat, conversations, favorites, health
from prenatal_chat.config import PrenatalChatConfig, load_config
from prenatal_chat.db.connection import (
    create_db_engine,
    create_session_factory,
    init_db,
    ping,
    session_scope,
)
from prenatal_chat.errors import DomainError, StoreUnavailableError
from prenatal_chat.services.ai_gateway_client import AIGatewayClient

logger = logging.getLogger(__name__)

SERVICE_NAME = "prenatal-chat-backend"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and the AI service client; close them on shutdown."""
    config: PrenatalChatConfig = app.state.config

    # --- Startup ---
    app.state.started_at = _time.time()
    engine = create_db_engine(config.database.url, echo=config.database.echo)
    init_db(engine)
    session_factory = create_session_factory(engine)
    with session_scope(session_factory) as db:
        ping(db)
    logger.info("Connected to store at %s", engine.url.render_as_string(hide_password=True))

    gateway = AIGatewayClient(
        config.gateway.url,
        timeout=config.gateway.timeout_seconds,
        health_timeout=config.gateway.health_timeout_seconds,
    )
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.gateway = gateway
    logger.info("AI service at %s", gateway.base_url)

    yield

    # --- Shutdown ---
    gateway.close()
    engine.dispose()
    logger.info("Store and AI service clients closed")


def _register_exception_handlers(app: FastAPI, debug: bool) -> None:
    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        """Render a DomainError with its declared status and body."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(OperationalError)
    async def store_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
        """Store connectivity failures are reported as 503."""
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
        err = StoreUnavailableError("Please try again later")
        return JSONResponse(status_code=err.status_code, content=err.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies and parameters become 400."""
        details = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', '')}"
            for e in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"error": "Validation error", "message": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Route not found",
                    "path": request.url.path,
                    "method": request.method,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Last resort: log with traceback, hide details unless debugging."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if debug else "Something went wrong",
            },
        )


def create_app(config: PrenatalChatConfig | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Configuration to use. Loaded from file/env when omitted.

    Returns:
        Configured FastAPI app. Clients are opened when its lifespan starts.
    """
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Prenatal Chat API",
        description="Conversation, favorites and chat relay backend for the prenatal assistant",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.rate_limiter = (
        RateLimiter(
            config.rate_limit.max_requests,
            config.rate_limit.window_seconds,
            trust_proxy=config.rate_limit.trust_proxy,
        )
        if config.rate_limit.enabled
        else None
    )

    # Registered innermost first; CORS ends up outermost.
    app.middleware("http")(enforce_rate_limit)
    app.middleware("http")(add_security_headers)
    if config.server.log_requests:
        app.middleware("http")(log_requests)
    if config.server.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.server.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "Accept"],
        )

    _register_exception_handlers(app, debug=config.server.debug)

    app.include_router(chat.router, prefix="/api")
    app.include_router(conversations.router, prefix="/api")
    app.include_router(favorites.router, prefix="/api")
    app.include_router(health.router, prefix="/api")

    @app.get("/health")
    def liveness(request: Request) -> dict:
        """Process liveness; does not touch the store or the AI service."""
        started_at = getattr(request.app.state, "started_at", None)
        uptime = round(_time.time() - started_at, 1) if started_at else 0.0
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": __version__,
            "uptime_seconds": uptime,
        }

    @app.get("/")
    def service_index() -> dict:
        """Service root listing the available endpoints."""
        return {
            "name": "Prenatal Chat API",
            "version": __version__,
            "docs": "/docs",
            "endpoints": {
                "chat": "POST /api/chat",
                "conversations": "GET /api/conversations/{user_id}",
                "messages": "GET /api/conversations/{conversation_id}/messages",
                "new_conversation": "POST /api/conversations/new",
                "delete_conversation": "DELETE /api/conversations/{conversation_id}",
                "add_favorite": "POST /api/favorites",
                "remove_favorite": "DELETE /api/favorites/{message_id}",
                "list_favorites": "GET /api/favorites/{user_id}",
                "check_favorite": "GET /api/favorites/{user_id}/check/{message_id}",
                "health": "GET /api/health",
            },
        }

    return app

