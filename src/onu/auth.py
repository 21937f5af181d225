"""
Pluggable request authentication.

An authenticator is any callable taking the raw inbound request and
returning ``True`` to admit it, either directly or through an awaitable.
It only runs in standalone mode; the healthcheck path is reachable
whatever it returns.

Example::

    async def require_token(request) -> bool:
        return request.headers.get("authorization") == f"Bearer {TOKEN}"

    client = OnuClient(onu_path="tasks", authenticator=require_token)
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from onu.logging import get_logger

logger = get_logger(__name__)

Authenticator = Callable[[Any], "bool | Awaitable[bool]"]


def allow_all(request: Any) -> bool:
    """Default authenticator: admit every request."""
    return True


async def authenticate(authenticator: Authenticator, request: Any) -> bool:
    """Run ``authenticator`` against ``request``, awaiting if needed.

    An authenticator that raises rejects the request.
    """
    try:
        outcome = authenticator(request)
        if inspect.isawaitable(outcome):
            outcome = await outcome
    except Exception as exc:
        logger.warning("authenticator_failed", error=str(exc), error_type=type(exc).__name__)
        return False
    return bool(outcome)
