"""
Onu - embeddable task-execution gateway.

Host a directory of tasks behind one HTTP endpoint that an orchestrator
can list, inspect and run::

    from onu import OnuClient

    client = OnuClient(onu_path="tasks", api_key="...")
    client.initialize_http_server()
"""

from onu._version import __version__
from onu.client import OnuClient
from onu.errors import DiscoveryError, ErrorCode, OnuError, TaskDefinitionError, TaskNotFoundError
from onu.registry import TaskRegistry
from onu.router import OnuRouter, ServerMode
from onu.settings import OnuSettings
from onu.task import FieldType, RunContext, Task, TaskField, ValidationResult

__all__ = [
    "__version__",
    "OnuClient",
    "OnuRouter",
    "ServerMode",
    "OnuSettings",
    "Task",
    "TaskField",
    "FieldType",
    "RunContext",
    "ValidationResult",
    "TaskRegistry",
    "ErrorCode",
    "OnuError",
    "DiscoveryError",
    "TaskDefinitionError",
    "TaskNotFoundError",
]
