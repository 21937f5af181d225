"""OnuClient — the facade a host process creates.

Two ways to serve tasks:

Embedded (mount inside an existing FastAPI/Starlette app)::

    from fastapi import FastAPI, Request
    from onu import OnuClient

    onu = OnuClient(onu_path=Path(__file__).parent / "tasks", api_key=API_KEY)
    app = FastAPI()

    @app.api_route("/api/onu", methods=["GET", "POST"])
    async def onu_entrypoint(request: Request):
        return await onu.handle_request(request)

Standalone (own HTTP server, authenticator enforced)::

    OnuClient(onu_path="tasks", api_key=API_KEY, server_port=8080).initialize_http_server()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import FastAPI
from starlette.responses import Response

from onu.app import create_app
from onu.auth import Authenticator
from onu.discovery import discover_tasks
from onu.errors import DiscoveryError
from onu.logging import configure_logging, get_logger
from onu.registry import TaskRegistry
from onu.router import OnuRouter, ServerMode
from onu.settings import OnuSettings
from onu.task import Task

logger = get_logger(__name__)


class OnuClient:
    """Hosts a set of tasks and answers orchestrator requests for them.

    Args:
        onu_path: Directory holding task files
        api_key: Onu API key, handed to tasks through ``RunContext.api_key``
        server_port: Port for ``initialize_http_server()``
        server_path: Mount path of the endpoint; a leading ``/`` is stripped
        authenticator: Admission predicate applied in standalone mode
        debug: Re-execute task files on every discovery pass
        registry: Registry to populate (a fresh one by default)
        host: Bind address for ``initialize_http_server()``
    """

    def __init__(
        self,
        onu_path: str | Path | None,
        api_key: str | None = None,
        *,
        server_port: int = 8080,
        server_path: str = "",
        authenticator: Authenticator | None = None,
        debug: bool = False,
        registry: TaskRegistry | None = None,
        host: str = "0.0.0.0",
    ) -> None:
        self.onu_path = Path(onu_path) if onu_path is not None else None
        self.api_key = api_key
        self.port = server_port
        self.host = host
        self.debug = debug
        self.tasks = registry if registry is not None else TaskRegistry()
        self._router = OnuRouter(
            self.tasks,
            self.onu_path,
            mode=ServerMode.EMBEDDED,
            server_path=server_path,
            authenticator=authenticator,
            api_key=api_key,
            debug=debug,
        )

    @classmethod
    def from_settings(
        cls,
        settings: OnuSettings | None = None,
        *,
        authenticator: Authenticator | None = None,
        registry: TaskRegistry | None = None,
    ) -> OnuClient:
        """Build a client from ``OnuSettings`` (environment / ``.env``)."""
        settings = settings or OnuSettings()
        return cls(
            settings.onu_path,
            settings.api_key,
            server_port=settings.server_port,
            server_path=settings.server_path,
            authenticator=authenticator,
            debug=settings.debug,
            registry=registry,
            host=settings.host,
        )

    @property
    def server_path(self) -> str:
        return self._router.server_path

    @property
    def router(self) -> OnuRouter:
        return self._router

    # ── Task management ──────────────────────────────────────────────────

    def init(self) -> int:
        """Discover tasks under ``onu_path``.

        Raises:
            DiscoveryError: If ``onu_path`` is unset, missing or unreadable
        """
        if self.onu_path is None:
            raise DiscoveryError(ValueError("onu_path is not configured"))
        return discover_tasks(self.onu_path, self.tasks, debug=self.debug)

    def reload(self) -> int:
        """Drop every registration and rediscover (development hot-reload)."""
        self.tasks.clear()
        return self.init()

    def register(self, task: Task) -> Task:
        """Register a task explicitly, without touching the filesystem."""
        self.tasks.register(task)
        return task

    # ── Serving ──────────────────────────────────────────────────────────

    async def handle_request(self, request: Any) -> Response:
        """Answer one request in embedded mode (no authenticator, any path)."""
        return await self._router.handle(request)

    def create_app(self) -> FastAPI:
        """Standalone FastAPI app: authenticator and path match enforced."""
        return create_app(self._router.with_mode(ServerMode.STANDALONE))

    def initialize_http_server(self, *, log_level: str = "info", configure_logs: bool = True) -> None:
        """Serve the standalone app with uvicorn.  Blocks until shutdown."""
        import uvicorn

        if configure_logs:
            configure_logging(level=log_level.upper())
        logger.info("onu_server_listening", url=f"http://localhost:{self.port}/{self.server_path}")
        uvicorn.run(self.create_app(), host=self.host, port=self.port, log_level=log_level)
