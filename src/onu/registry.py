"""Task Registry — slug → Task lookup.

Manifesto:
The router needs to resolve ``?slug=send-report`` to a ``Task``.  The
registry decouples registration (discovery at startup, or explicit
``register()`` calls from a plugin entry point) from resolution (at
request time), and is injectable so tests get an isolated instance.

ARCHITECTURE
────────────
::

    TaskRegistry
      ├── .register(task)     ─ store under task.slug (last write wins)
      ├── .get(slug)          ─ lookup, raises TaskNotFoundError
      ├── .find(slug)         ─ lookup, returns None
      ├── .metadata()         ─ list/info payloads, registration order
      └── .clear()            ─ drop everything (debug reload)

Duplicate slugs are not an error: the later registration replaces the
earlier one and a ``task_slug_overwritten`` warning is logged.

Tags:
    onu, registry, task-registry, lookup

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from onu.errors import TaskNotFoundError
from onu.logging import get_logger
from onu.task import Task

logger = get_logger(__name__)


class TaskRegistry:
    """Injectable task registry.

    Example:
        >>> registry = TaskRegistry()
        >>> registry.register(Task(name="Add", slug="add", run=lambda i, c: i["a"] + i["b"]))
        >>> registry.get("add").name
        'Add'
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def register(self, task: Task, *, source: str | None = None) -> None:
        """Register a task under its slug.

        Args:
            task: The task to register
            source: Where the task came from (file path), for diagnostics
        """
        if task.slug in self._tasks and self._tasks[task.slug] is not task:
            logger.warning("task_slug_overwritten", slug=task.slug, source=source)
        self._tasks[task.slug] = task
        logger.debug("task_registered", slug=task.slug, source=source)

    def get(self, slug: str) -> Task:
        """Get a task by slug.

        Raises:
            TaskNotFoundError: If no task is registered under ``slug``
        """
        try:
            return self._tasks[slug]
        except KeyError:
            raise TaskNotFoundError(slug) from None

    def find(self, slug: str) -> Task | None:
        """Get a task by slug, or ``None``."""
        return self._tasks.get(slug)

    def has(self, slug: str) -> bool:
        """Check if a task is registered."""
        return slug in self._tasks

    def slugs(self) -> list[str]:
        """All registered slugs, in registration order."""
        return list(self._tasks.keys())

    def metadata(self) -> list[dict[str, Any]]:
        """Metadata for every registered task, in registration order."""
        return [task.metadata() for task in self._tasks.values()]

    def unregister(self, slug: str) -> bool:
        """Remove a task.  Returns True if it was registered."""
        return self._tasks.pop(slug, None) is not None

    def clear(self) -> None:
        """Drop every registration."""
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, slug: object) -> bool:
        return slug in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))


