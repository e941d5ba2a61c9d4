from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable
    from pathlib import Path
    from typing import Any

    from .resource import Resource


class MilkrunError(Exception):
    def __init__(self, *args: "Any", **kwargs: "Any") -> None:
        super().__init__(*args, **kwargs)


##
## RESOURCE LOADING
##


class ResourceLoadError(MilkrunError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


class MalformedResource(ResourceLoadError):
    def __init__(self, path: "Path | str", reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{path} is not a valid resource: {reason}")


class DuplicateResourceName(ResourceLoadError):
    def __init__(self, names: "Iterable[str]") -> None:
        self.names = sorted(names)
        super().__init__(
            f"Resource names must be unique. Duplicated names: {self.names}"
        )


##
## SCHEDULING
##


class ScheduleError(MilkrunError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


class UnresolvedDependency(ScheduleError):
    def __init__(self, resource: str, missing: "Iterable[str]") -> None:
        self.resource = resource
        self.missing = sorted(missing)
        super().__init__(
            f"Resource '{resource}' depends on undefined resources: {self.missing}"
        )


class CyclicDependency(ScheduleError):
    def __init__(self, cycles: list[tuple[str, ...]]) -> None:
        self.cycles = cycles
        cycle_str = "\n  ".join(" -> ".join((*cycle, cycle[0])) for cycle in cycles)
        super().__init__(
            "Resources cannot contain dependency cycles. Offending cycles:\n"
            f"  {cycle_str}"
        )


##
## EXECUTION
##


class ResourceExecutionError(MilkrunError):
    def __init__(self, resource: "Resource", message: str) -> None:
        self.resource = resource
        super().__init__(f"{resource.kind.value} '{resource.name}' failed: {message}")


class RequestExecutionError(ResourceExecutionError):
    pass


class ScriptExecutionError(ResourceExecutionError):
    pass
