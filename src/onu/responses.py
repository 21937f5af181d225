"""
Response envelope helpers.

Every JSON body the gateway writes carries two constant fields after the
payload: ``version`` (this library's version) and ``sdk`` (``"python"``).
The healthcheck is the one non-JSON response.
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse, PlainTextResponse

from onu._version import __version__
from onu.errors import ErrorCode, status_for_error_code

SDK = "python"
HEALTHCHECK_BODY = "200 OK"


def envelope(payload: dict[str, Any]) -> dict[str, Any]:
    """Append ``version`` and ``sdk`` to ``payload``."""
    return {**payload, "version": __version__, "sdk": SDK}


def json_response(status_code: int, payload: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope(payload)))


def error_response(
    code: ErrorCode | str,
    *,
    status_code: int | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build an ``{"error": code, ...}`` envelope.

    ``code`` may be a free-form string: run faults report the exception
    message in the ``error`` field.
    """
    if status_code is None:
        status_code = status_for_error_code(ErrorCode(code))
    value = code.value if isinstance(code, ErrorCode) else code
    return json_response(status_code, {"error": value, **extra})


def healthcheck_response() -> PlainTextResponse:
    return PlainTextResponse(HEALTHCHECK_BODY, status_code=200)
