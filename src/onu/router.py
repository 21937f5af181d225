"""Request Router — admission, action routing and dispatch for one request.

WHY
───
An Onu gateway either owns its HTTP server (standalone) or is mounted
inside an existing FastAPI/Starlette app (embedded).  Both go through the
same ``OnuRouter.handle()``; ``ServerMode`` only decides which admission
checks run, so the dispatch table exists exactly once.

ARCHITECTURE
────────────
::

    handle(request)
      1. path parseable?              STANDALONE: else 403
      2. authenticator(request)       STANDALONE: False → 401 (healthcheck exempt)
      3. path ∈ {/healthcheck, /<server_path>}
                                      STANDALONE: else 403 · EMBEDDED: any path
      4. registry empty → discovery   (DiscoveryError propagates)
      5. /healthcheck                 → 200 "200 OK"
      6. onu-signature header?        else 401 unauthorized
      7. ?action                      absent → 404 no_action_found
                                      unknown → 404 unrecognized_action
      8. method × action
           GET  list                  → 200 {tasks: [...]}
           GET  info  &slug=          → 200 {task: {...}}
           POST run   &slug=          → execution pipeline
           GET/POST, other action     → 404 invalid_action
           other verbs                → 405 method_not_allowed

Request objects are duck-typed so the router can be driven by a Starlette
``Request`` or by any host object exposing ``method``, ``url``,
``headers``, ``query_params`` and, optionally, a pre-parsed ``body``
mapping.

Related modules:
    pipeline.py  — POST run
    discovery.py — lazy registry population
    auth.py      — authenticator protocol
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from starlette.responses import Response

from onu.auth import Authenticator, allow_all, authenticate
from onu.discovery import discover_tasks
from onu.errors import ErrorCode
from onu.logging import get_logger
from onu.pipeline import execute_task
from onu.registry import TaskRegistry
from onu.responses import error_response, healthcheck_response, json_response

logger = get_logger(__name__)

HEALTHCHECK_PATH = "/healthcheck"
SIGNATURE_HEADER = "onu-signature"


class ServerMode(str, Enum):
    """Which admission checks the router applies."""

    STANDALONE = "standalone"
    EMBEDDED = "embedded"


class Action(str, Enum):
    LIST = "list"
    INFO = "info"
    RUN = "run"


# Which action each supported verb serves
METHOD_ACTIONS: dict[str, frozenset[Action]] = {
    "GET": frozenset({Action.LIST, Action.INFO}),
    "POST": frozenset({Action.RUN}),
}


class InvalidBodyError(ValueError):
    """The request body could not be decoded into a JSON object."""


def request_path(request: Any) -> str | None:
    """Extract the URL path from a Starlette request or a host request object."""
    url = getattr(request, "url", None)
    if url is None:
        return None
    path = getattr(url, "path", None)
    if path is None:
        path = urlsplit(str(url)).path
    return path or None


def _query_params(request: Any) -> Mapping[str, str]:
    params = getattr(request, "query_params", None)
    if params is not None:
        return params
    # Host objects that only carry a URL string
    return dict(parse_qsl(urlsplit(str(getattr(request, "url", ""))).query))


async def read_payload(request: Any) -> Any:
    """Return the decoded request body.

    A host framework that already parsed the body exposes it as a mapping
    ``body`` attribute; otherwise the raw stream is buffered and decoded
    as JSON.
    """
    body = getattr(request, "body", None)
    if isinstance(body, Mapping):
        return body
    decode = getattr(request, "json", None)
    if decode is None:
        return None
    try:
        return await decode()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidBodyError(str(exc)) from exc


class OnuRouter:
    """Routes one inbound request to healthcheck, list, info or run.

    Args:
        registry: Registry the handlers read from
        onu_path: Task root used for lazy discovery
        mode: Standalone (admission checks) or embedded
        server_path: Mount path without leading slash (``""`` = root)
        authenticator: Admission predicate, standalone mode only
        api_key: Handed to tasks through ``RunContext``
        debug: Re-execute task modules on discovery
    """

    def __init__(
        self,
        registry: TaskRegistry,
        onu_path: str | Path | None,
        *,
        mode: ServerMode = ServerMode.EMBEDDED,
        server_path: str = "",
        authenticator: Authenticator | None = None,
        api_key: str | None = None,
        debug: bool = False,
    ) -> None:
        self.registry = registry
        self.onu_path = onu_path
        self.mode = mode
        self.server_path = server_path[1:] if server_path.startswith("/") else server_path
        self.authenticator = authenticator or allow_all
        self.api_key = api_key
        self.debug = debug
        self._discovery_lock = asyncio.Lock()

    @property
    def mount_path(self) -> str:
        return f"/{self.server_path}"

    def with_mode(self, mode: ServerMode) -> OnuRouter:
        """A router sharing this one's registry, with a different mode."""
        return OnuRouter(
            self.registry,
            self.onu_path,
            mode=mode,
            server_path=self.server_path,
            authenticator=self.authenticator,
            api_key=self.api_key,
            debug=self.debug,
        )

    async def ensure_tasks(self) -> None:
        """Run discovery if the registry is still empty.

        The walk imports task files, so it runs in a worker thread; the lock
        keeps concurrent first requests from walking twice.
        """
        if len(self.registry) or self.onu_path is None:
            return
        async with self._discovery_lock:
            if len(self.registry) == 0:
                await asyncio.to_thread(discover_tasks, self.onu_path, self.registry, debug=self.debug)

    async def handle(self, request: Any) -> Response:
        """Produce exactly one response for ``request``.

        Raises:
            DiscoveryError: If lazy discovery fails
        """
        standalone = self.mode is ServerMode.STANDALONE
        path = request_path(request)

        if path is None:
            if standalone:
                return error_response(ErrorCode.FORBIDDEN)
            return error_response(ErrorCode.UNAUTHORIZED)

        if standalone:
            admitted = await authenticate(self.authenticator, request)
            if not admitted and path != HEALTHCHECK_PATH:
                logger.info("request_rejected", path=path, reason="authenticator")
                return error_response(ErrorCode.UNAUTHORIZED)
            if path not in (HEALTHCHECK_PATH, self.mount_path):
                return error_response(ErrorCode.FORBIDDEN)

        await self.ensure_tasks()

        if path == HEALTHCHECK_PATH:
            return healthcheck_response()

        if not request.headers.get(SIGNATURE_HEADER):
            logger.info("request_rejected", path=path, reason="missing_signature")
            return error_response(ErrorCode.UNAUTHORIZED)

        return await self._dispatch(request)

    async def _dispatch(self, request: Any) -> Response:
        params = _query_params(request)
        raw_action = params.get("action")
        if not raw_action:
            return error_response(ErrorCode.NO_ACTION_FOUND)

        try:
            action = Action(raw_action)
        except ValueError:
            return error_response(ErrorCode.UNRECOGNIZED_ACTION)

        method = str(request.method).upper()
        served = METHOD_ACTIONS.get(method)
        if served is None:
            return error_response(ErrorCode.METHOD_NOT_ALLOWED)
        if action not in served:
            return error_response(ErrorCode.INVALID_ACTION)

        if action is Action.LIST:
            return self._list()
        if action is Action.INFO:
            return self._info(params.get("slug"))
        return await self._run(request, params.get("slug"))

    def _list(self) -> Response:
        return json_response(200, {"tasks": self.registry.metadata()})

    def _info(self, slug: str | None) -> Response:
        if not slug:
            return error_response(ErrorCode.MISSING_TASK_SLUG, status_code=404)
        task = self.registry.find(slug)
        if task is None:
            return error_response(ErrorCode.NO_TASK_FOUND)
        return json_response(200, {"task": task.metadata()})

    async def _run(self, request: Any, slug: str | None) -> Response:
        try:
            payload = await read_payload(request)
        except InvalidBodyError as exc:
            # An undecodable body carries no execution id; the pipeline reports that
            logger.info("request_body_invalid", error=str(exc))
            payload = None

        result = await execute_task(self.registry, slug, payload, api_key=self.api_key)
        return json_response(result.status_code, result.body)


__all__ = [
    "HEALTHCHECK_PATH",
    "SIGNATURE_HEADER",
    "ServerMode",
    "Action",
    "OnuRouter",
    "read_payload",
    "request_path",
]
