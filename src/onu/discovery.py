"""Task discovery — populate a ``TaskRegistry`` from a directory tree.

Every ``*.py`` file under the task root is imported and its module-level
``task`` attribute registered under its slug.  The walk is depth-first
with entries visited in name order, so "last write wins" on duplicate
slugs is deterministic.

Rules:
    - On the initial (top-level) pass ``__init__.py`` and
      ``_onu_handler.py`` are skipped: they are the host package's own
      entry points, not task files.  Nested directories are walked with
      no exclusions.
    - ``__pycache__`` is never walked.
    - A file without a ``Task`` bound to ``task`` is skipped with a
      warning; discovery carries on.
    - Any filesystem or import failure aborts the pass with
      ``DiscoveryError``.  Tasks registered before the failure stay.
    - Every directory becomes a synthetic package whose search path is that
      directory, and each file is loaded as one of its submodules, so a task
      can import a sibling helper with ``from .helpers import greet``.  The
      task root is also appended to ``sys.path`` for plain ``import helpers``.
    - Loaded modules are cached in ``sys.modules`` under names derived from
      the file path.  With ``debug=True`` every cached module of a directory
      (helpers included) is dropped and re-executed, so edits show up without
      a restart.
"""

from __future__ import annotations

import hashlib
import importlib.machinery
import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType

from onu.errors import DiscoveryError
from onu.logging import get_logger
from onu.registry import TaskRegistry
from onu.task import Task

logger = get_logger(__name__)

DEFAULT_EXPORT = "task"
# Source files only: a stale .pyc beside its edited source would register twice
TASK_FILE_SUFFIX = ".py"
RESERVED_FILENAMES = frozenset({"__init__.py", "_onu_handler.py"})
SKIPPED_DIRECTORIES = frozenset({"__pycache__"})

_MODULE_PREFIX = "_onu_task"


def package_name_for(directory: Path) -> str:
    """Stable ``sys.modules`` key for the synthetic package of a directory."""
    resolved = str(directory.resolve())
    digest = hashlib.sha1(resolved.encode("utf-8")).hexdigest()[:12]
    return f"{_MODULE_PREFIX}_{digest}"


def module_name_for(path: Path) -> str:
    """Stable ``sys.modules`` key for a task file.

    The file is a submodule of its directory's package, under the same name
    a sibling's ``from .name import ...`` resolves to.
    """
    stem = path.stem if path.stem.isidentifier() else re.sub(r"\W", "_", path.stem)
    return f"{package_name_for(path.parent)}.{stem}"


def ensure_package(directory: Path) -> ModuleType:
    """Register (once) a namespace-like package searching ``directory``."""
    name = package_name_for(directory)
    package = sys.modules.get(name)
    if package is None:
        spec = importlib.machinery.ModuleSpec(name, None, is_package=True)
        spec.submodule_search_locations = [str(directory.resolve())]
        package = importlib.util.module_from_spec(spec)
        sys.modules[name] = package
    return package


def _drop_package_modules(directory: Path) -> None:
    prefix = package_name_for(directory) + "."
    for name in [name for name in sys.modules if name.startswith(prefix)]:
        del sys.modules[name]


def load_module(path: Path, *, debug: bool = False) -> ModuleType:
    """Import ``path`` as a submodule of its directory's package.

    The cached copy is reused unless ``debug``.
    """
    ensure_package(path.parent)
    name = module_name_for(path)
    if name in sys.modules:
        if not debug:
            return sys.modules[name]
        logger.debug("task_module_reloaded", path=str(path))
        del sys.modules[name]

    # Explicit loader: suffix matching is case-insensitive, importlib's is not
    loader = importlib.machinery.SourceFileLoader(name, str(path))
    spec = importlib.util.spec_from_file_location(name, path, loader=loader)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load task module from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(name, None)
        raise
    return module


def _is_task_file(path: Path) -> bool:
    return path.name.lower().endswith(TASK_FILE_SUFFIX)


def _walk(directory: Path, registry: TaskRegistry, *, initial: bool, debug: bool) -> int:
    registered = 0
    entries = sorted(directory.iterdir(), key=lambda p: p.name)
    if initial:
        entries = [entry for entry in entries if entry.name not in RESERVED_FILENAMES]
    if debug:
        _drop_package_modules(directory)

    for entry in entries:
        if entry.is_dir():
            if entry.name not in SKIPPED_DIRECTORIES:
                registered += _walk(entry, registry, initial=False, debug=debug)
            continue

        if not _is_task_file(entry):
            continue

        module = load_module(entry, debug=debug)
        task = getattr(module, DEFAULT_EXPORT, None)
        if not isinstance(task, Task):
            logger.warning("no_default_task_export", path=str(entry), export=DEFAULT_EXPORT)
            continue

        registry.register(task, source=str(entry))
        registered += 1

    return registered


def _add_to_import_path(root: Path) -> None:
    entry = str(root.resolve())
    if root.is_dir() and entry not in sys.path:
        # Appended so a task file can never shadow an installed module
        sys.path.append(entry)


def discover_tasks(root: str | Path, registry: TaskRegistry, *, debug: bool = False) -> int:
    """Walk ``root`` and register every task found.

    Args:
        root: Task root directory; must exist
        registry: Registry to populate
        debug: Re-execute already-imported task files

    Returns:
        Number of task files registered during this pass

    Raises:
        DiscoveryError: On any listing or import failure
    """
    root = Path(root)
    logger.debug("task_discovery_started", root=str(root), debug=debug)
    try:
        _add_to_import_path(root)
        count = _walk(root, registry, initial=True, debug=debug)
    except Exception as exc:
        logger.error("task_discovery_failed", root=str(root), error=str(exc))
        raise DiscoveryError(exc) from exc

    logger.info("tasks_discovered", root=str(root), count=count, registered=len(registry))
    return count


__all__ = [
    "DEFAULT_EXPORT",
    "RESERVED_FILENAMES",
    "discover_tasks",
    "ensure_package",
    "load_module",
    "module_name_for",
    "package_name_for",
]
