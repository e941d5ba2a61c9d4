from .config import Config
from .context import ExecutionContext, RequestResult, ScriptResult
from .executor import Executor, discover_names, execute, run
from .loader import load_resources
from .resource import Kind, OnError, Resource
from .schedule import create_schedule, resolve_topology

__all__ = [
    "Config",
    "ExecutionContext",
    "Executor",
    "Kind",
    "OnError",
    "RequestResult",
    "Resource",
    "ScriptResult",
    "create_schedule",
    "discover_names",
    "execute",
    "load_resources",
    "resolve_topology",
    "run",
]
