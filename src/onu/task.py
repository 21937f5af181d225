"""Task model — the unit of work a gateway hosts.

WHY
───
A task file only has to build one ``Task`` and bind it to the module-level
name ``task``.  Everything the orchestrator needs to render a form and run
the work (name, slug, input fields) lives on that object; everything the
gateway needs to execute it (``validate``, ``run``) is a plain callable,
sync or async.

ARCHITECTURE
────────────
::

    Task (frozen)
      ├── name, description, slug, owner   ─ metadata
      ├── input: {key → TaskField}         ─ descriptive only
      ├── validate(input, ctx)?            ─ bool | ValidationResult | {"valid", "errors"}
      └── run(input, ctx)                  ─ result (JSON-encodable)

    RunContext(execution_id, api_key)      ─ passed to validate and run
    ValidationResult(valid, errors)        ─ structured validation outcome

Example::

    from onu import Task, TaskField

    async def run(input, ctx):
        return {"greeting": f"hello {input['name']}", "execution": ctx.execution_id}

    task = Task(
        name="Say hello",
        slug="say-hello",
        input={"name": TaskField(name="Name", type="string", required=True)},
        validate=lambda input, ctx: bool(input.get("name")),
        run=run,
    )
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from onu.errors import TaskDefinitionError


class FieldType(str, Enum):
    """Input widget types an orchestrator knows how to render."""

    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    CSV = "csv"
    EMAIL = "email"


class TaskField(BaseModel):
    """Descriptive metadata for one task input.

    The gateway never enforces these constraints; a task that cares does so
    in its own ``validate``.  ``options`` is only meaningful for ``select``.
    """

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    name: str
    type: FieldType
    description: str | None = None
    options: list[str] | None = None
    required: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class RunContext:
    """Per-invocation data handed to ``validate`` and ``run``.

    Attributes:
        execution_id: Orchestrator-supplied correlation id
        api_key: The gateway's configured API key, if any
    """

    execution_id: str
    api_key: str | None = None


@dataclass
class ValidationResult:
    """Structured outcome of a task's ``validate``."""

    valid: bool
    errors: list[str] | None = None


# validate returns bool | ValidationResult | Mapping, possibly wrapped in an awaitable
ValidateFn = Callable[[dict[str, Any], RunContext], Any]
RunFn = Callable[[dict[str, Any], RunContext], Any]


@dataclass(frozen=True, eq=False)
class Task:
    """A named unit of work.

    ``slug`` is the registry key; it cannot change once the task exists.
    """

    name: str
    slug: str
    run: RunFn
    description: str = ""
    owner: str | None = None
    input: dict[str, TaskField] = field(default_factory=dict)
    validate: ValidateFn | None = None

    def __post_init__(self) -> None:
        if not self.slug or not isinstance(self.slug, str):
            raise TaskDefinitionError(f"Task {self.name!r} must define a non-empty string slug")
        if not callable(self.run):
            raise TaskDefinitionError(f"Task {self.slug!r} must define a callable run")
        if self.validate is not None and not callable(self.validate):
            raise TaskDefinitionError(f"Task {self.slug!r} has a validate that is not callable")
        # Accept plain dicts for fields so task files stay terse
        fields = {
            key: spec if isinstance(spec, TaskField) else TaskField.model_validate(spec)
            for key, spec in (self.input or {}).items()
        }
        object.__setattr__(self, "input", fields)
        object.__setattr__(self, "description", self.description or "")

    def metadata(self) -> dict[str, Any]:
        """Describe the task for ``list`` and ``info`` responses."""
        return {
            "name": self.name,
            "description": self.description,
            "slug": self.slug,
            "owner": self.owner,
            "input": {key: spec.to_dict() for key, spec in self.input.items()},
        }


__all__ = [
    "FieldType",
    "TaskField",
    "RunContext",
    "ValidationResult",
    "Task",
]
