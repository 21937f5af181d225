"""Execution Pipeline — validate and run one task against one payload.

WHY
───
The router should only decide *which* task runs.  Everything between
"the orchestrator asked to run ``slug``" and "here is the envelope to
write back" (precondition checks, validation interpretation, fault
capture) lives here so it can be tested without HTTP.

ARCHITECTURE
────────────
::

    execute_task(registry, slug, payload)
      1. slug present?                 → 400 missing_task_slug
      2. slug registered?              → 404 no_task_found
      3. _onu__executionId present?    → 400 missing_execution_id
      4. RunContext(execution_id, api_key)
      5. validate(input, ctx)  (optional, sync or async)
           False / {valid: False}      → 422 invalid_input (+errors)
           anything else non-boolean   → 422 invalid_validation
      6. run(input, ctx)       (sync or async)
           returns value               → 200 {response: value}
           raises                      → 400 {error: str(exc)}

    Returns PipelineResult(status_code, body) — body has no envelope
    fields yet; the router adds ``version``/``sdk``.

A fault in ``run`` never escapes: it is logged with its traceback and
reported through the envelope only.

Related modules:
    router.py   — calls execute_task for POST ?action=run
    task.py     — Task, RunContext, ValidationResult
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from fastapi.encoders import jsonable_encoder

from onu.errors import ErrorCode, status_for_error_code
from onu.logging import LogContext, get_logger
from onu.registry import TaskRegistry
from onu.task import RunContext, Task, ValidationResult

logger = get_logger(__name__)

INPUT_KEY = "_onu__input"
EXECUTION_ID_KEY = "_onu__executionId"
UNEXPECTED_VALIDATION_MESSAGE = "Received unexpected response from validation function"


@dataclass(frozen=True)
class PipelineResult:
    """Status code and un-enveloped JSON body of one pipeline invocation."""

    status_code: int
    body: dict[str, Any]

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def _error(code: ErrorCode, status_code: int | None = None, **extra: Any) -> PipelineResult:
    return PipelineResult(
        status_code=status_code if status_code is not None else status_for_error_code(code),
        body={"error": code.value, **extra},
    )


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def interpret_validation(outcome: Any) -> PipelineResult | None:
    """Map a ``validate`` return value to a rejection, or ``None`` if valid.

    Accepted shapes:
        - ``bool``
        - ``ValidationResult``
        - a mapping with a ``valid`` key (``{"valid": False, "errors": [...]}``)
    """
    if isinstance(outcome, bool):
        return None if outcome else _error(ErrorCode.INVALID_INPUT)

    if isinstance(outcome, ValidationResult):
        valid, errors = outcome.valid, outcome.errors
    elif isinstance(outcome, Mapping) and "valid" in outcome:
        valid, errors = outcome["valid"], outcome.get("errors")
    else:
        return _error(ErrorCode.INVALID_VALIDATION, errors=[UNEXPECTED_VALIDATION_MESSAGE])

    if valid:
        return None
    return _error(ErrorCode.INVALID_INPUT, errors=list(errors or []))


async def _validate(task: Task, input_data: dict[str, Any], context: RunContext) -> PipelineResult | None:
    if task.validate is None:
        return None
    try:
        outcome = await _maybe_await(task.validate(input_data, context))
    except Exception as exc:
        logger.warning("task_validation_raised", error=str(exc), error_type=type(exc).__name__)
        return _error(ErrorCode.INVALID_VALIDATION, errors=[str(exc) or type(exc).__name__])
    return interpret_validation(outcome)


async def run_task(task: Task, input_data: dict[str, Any], context: RunContext) -> PipelineResult:
    """Validate and run an already-resolved task."""
    async with LogContext(slug=task.slug, execution_id=context.execution_id):
        rejection = await _validate(task, input_data, context)
        if rejection is not None:
            logger.info("task_input_rejected", error=rejection.body["error"])
            return rejection

        logger.info("task_started")
        try:
            result = await _maybe_await(task.run(input_data, context))
            # Encode inside the guard: an unserializable result is a task fault
            response = jsonable_encoder(result)
        except Exception as exc:
            logger.exception("task_failed", error_type=type(exc).__name__)
            return PipelineResult(status_code=400, body={"error": str(exc) or type(exc).__name__})

        logger.info("task_succeeded")
        return PipelineResult(status_code=200, body={"response": response})


async def execute_task(
    registry: TaskRegistry,
    slug: str | None,
    payload: Mapping[str, Any] | None,
    *,
    api_key: str | None = None,
) -> PipelineResult:
    """Resolve ``slug`` and run it with the orchestrator's ``payload``.

    Args:
        registry: Registry to resolve the slug against
        slug: Task slug from the query string
        payload: Decoded request body (``_onu__input``, ``_onu__executionId``)
        api_key: Gateway API key, exposed to the task through ``RunContext``

    Returns:
        PipelineResult — exactly one per call
    """
    if not slug:
        return _error(ErrorCode.MISSING_TASK_SLUG, status_code=400)

    task = registry.find(slug)
    if task is None:
        return _error(ErrorCode.NO_TASK_FOUND)

    payload = payload if isinstance(payload, Mapping) else {}
    execution_id = payload.get(EXECUTION_ID_KEY)
    if not execution_id:
        return _error(ErrorCode.MISSING_EXECUTION_ID)

    input_data = payload.get(INPUT_KEY) or {}
    context = RunContext(execution_id=str(execution_id), api_key=api_key)
    return await run_task(task, input_data, context)


__all__ = [
    "INPUT_KEY",
    "EXECUTION_ID_KEY",
    "PipelineResult",
    "interpret_validation",
    "run_task",
    "execute_task",
]
