"""
FastAPI application factory for the standalone gateway.

``create_app()`` wires middleware, the discovery-error handler and one
catch-all route that hands every request to ``OnuRouter.handle()``.
Path matching, authentication and the signature gate all live in the
router, so the app exposes no other routes (and no docs).

Manifesto:
    The app factory is the single composition root for standalone mode —
    hosts that embed the gateway never touch it and call
    ``OnuClient.handle_request()`` from their own route instead.

Tags:
    onu, api, app-factory, composition-root, FastAPI

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from onu._version import __version__
from onu.errors import OnuError
from onu.logging import get_logger
from onu.middleware import RequestIDMiddleware, TimingMiddleware
from onu.responses import envelope
from onu.router import OnuRouter

logger = get_logger("onu.app")

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


async def onu_error_handler(request: Request, exc: OnuError) -> JSONResponse:
    """Errors that escape the router (discovery) → 500 with an envelope."""
    logger.error("request_failed", path=request.url.path, **exc.to_dict())
    return JSONResponse(status_code=500, content=envelope({"error": exc.code}))


def create_app(router: OnuRouter) -> FastAPI:
    """Build a FastAPI app serving ``router`` on every path.

    Args:
        router: The router to serve, normally in ``ServerMode.STANDALONE``
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "onu_gateway_starting",
            version=__version__,
            mode=router.mode.value,
            mount_path=router.mount_path,
            onu_path=str(router.onu_path) if router.onu_path is not None else None,
        )
        yield
        logger.info("onu_gateway_stopping")

    app = FastAPI(
        title="onu",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.onu_router = router

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(OnuError, onu_error_handler)

    @app.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
    async def gateway(request: Request):
        return await router.handle(request)

    return app
