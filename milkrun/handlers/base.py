from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import anyio

from milkrun.exceptions import ResourceExecutionError
from milkrun.scripting import ScriptConsole

if TYPE_CHECKING:  # pragma: no cover
    from typing import ClassVar

    from milkrun.config import Config
    from milkrun.context import ExecutionContext
    from milkrun.resource import Kind, Resource


class Handler(ABC):
    """
    Performs the side effect of a single resource kind. Failures listed in
    `expected_errors` are raised as the kind's `error_class`, anything else is a bug
    and propagates untouched.
    """

    kind: "ClassVar[Kind]"
    error_class: "ClassVar[type[ResourceExecutionError]]"
    expected_errors: "ClassVar[tuple[type[Exception], ...]]" = ()

    def __init__(self, config: "Config") -> None:
        self.config = config

    def timeout(self, resource: "Resource") -> float | None:
        return resource.spec.timeout or self.config.resource_timeout

    async def handle(self, resource: "Resource", context: "ExecutionContext") -> None:
        """Run `resource` to completion against `context`."""
        console = ScriptConsole(resource.name)
        timeout = self.timeout(resource)

        try:
            with anyio.fail_after(timeout):
                await self.execute(resource, context, console)
        except ResourceExecutionError:
            raise
        except TimeoutError as e:
            raise self.error_class(resource, f"timed out after {timeout}s") from e
        except self.expected_errors as e:
            raise self.error_class(resource, f"{type(e).__name__}: {e}") from e

    @abstractmethod
    async def execute(
        self,
        resource: "Resource",
        context: "ExecutionContext",
        console: ScriptConsole,
    ) -> None:
        raise NotImplementedError()
