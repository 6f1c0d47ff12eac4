"""FastAPI application factory for the SplitUI proxy server."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from splitui import __version__
from splitui.capabilities.registry import CapabilityRegistry
from splitui.models.protocol import ModelProtocol
from splitui.server.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the backend model's connections on shutdown."""
    yield
    close = getattr(app.state.model, "aclose", None)
    if close is not None:
        logger.debug("Closing %s", app.state.model.model_id)
        await close()


def create_app(
    model: ModelProtocol,
    *,
    registry: CapabilityRegistry | None = None,
    provider: str = "unknown",
    cors_origins: tuple[str, ...] = ("http://localhost:5173", "http://127.0.0.1:5173"),
) -> FastAPI:
    """Create FastAPI application.

    Args:
        model: Backend model every request is forwarded to.
        registry: Capabilities exposed by /api/tools and /api/detect-intent.
            Defaults to the built-in catalog.
        provider: Provider name reported by /health.
        cors_origins: Browser origins allowed to call the API.

    Returns:
        Configured FastAPI application.
    """
    if registry is None:
        registry = CapabilityRegistry.default()

    app = FastAPI(
        title="SplitUI Proxy",
        description="Intent detection and generation proxy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.model = model
    app.state.registry = registry
    app.state.provider = provider

    app.include_router(router)

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(cors_origins),
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    return app
