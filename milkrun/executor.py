import logging
from contextlib import AsyncExitStack
from typing import TYPE_CHECKING

import httpx

from .config import Config
from .context import ExecutionContext
from .exceptions import ResourceExecutionError
from .handlers import RequestHandler, ScriptHandler
from .loader import filter_environment, load_resources, validate_names
from .resource import Kind, OnError
from .schedule import create_schedule
from .scripting import ScriptConsole

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable, Mapping
    from pathlib import Path
    from typing import Any

    from .handlers import Handler
    from .resource import Resource

logger = logging.getLogger(__name__)


class Executor:
    """
    Runs a set of resources one at a time in dependency order, threading a single
    `ExecutionContext` through every handler.

    An `httpx.AsyncClient` is created for each run unless one is provided, in which
    case its lifecycle belongs to the caller. Handlers may be replaced per kind.
    """

    def __init__(
        self,
        config: Config | None = None,
        handlers: "Mapping[Kind, Handler] | None" = None,
        client: httpx.AsyncClient | None = None,
        **settings: "Any",
    ) -> None:
        self.config = config or Config(**settings)
        self.handlers: dict[Kind, "Handler"] = dict(handlers or {})
        self.client = client

    def on_error(self, resource: "Resource") -> OnError:
        return resource.spec.on_error or self.config.on_error(resource.kind)

    def _default_handlers(self, client: httpx.AsyncClient) -> dict[Kind, "Handler"]:
        return {
            Kind.REQUEST: RequestHandler(self.config, client),
            Kind.SCRIPT: ScriptHandler(self.config),
        }

    async def _client(self, stack: AsyncExitStack) -> httpx.AsyncClient:
        if self.client is not None:
            return self.client

        return await stack.enter_async_context(
            httpx.AsyncClient(
                timeout=self.config.http_timeout, verify=self.config.verify_tls
            )
        )

    async def execute(self, resources: "Iterable[Resource]") -> ExecutionContext:
        """
        Execute `resources` and return the resulting context. Structural problems
        (duplicate names, missing dependencies, cycles) are raised before any
        resource runs.
        """
        schedule = create_schedule(validate_names(list(resources)))
        context = ExecutionContext()

        async with AsyncExitStack() as stack:
            handlers = {
                **self._default_handlers(await self._client(stack)),
                **self.handlers,
            }

            for resource in schedule:
                await self._execute_resource(handlers, resource, context)

        return context

    async def _execute_resource(
        self,
        handlers: dict[Kind, "Handler"],
        resource: "Resource",
        context: ExecutionContext,
    ) -> None:
        handler = handlers[resource.kind]

        logger.debug("Executing %s", resource)

        try:
            await handler.handle(resource, context)
        except ResourceExecutionError as e:
            policy = self.on_error(resource)
            ScriptConsole(resource.name).error(f"{e} (onError={policy.value})")

            if policy is OnError.ABORT:
                raise


async def execute(
    resources: "Iterable[Resource]",
    environment: str = "",
    config: Config | None = None,
    **kwargs: "Any",
) -> ExecutionContext:
    """Run an unordered resource set restricted to `environment`."""
    return await Executor(config, **kwargs).execute(
        filter_environment(resources, environment)
    )


async def run(
    root: "Path | str",
    environment: str = "",
    config: Config | None = None,
    **kwargs: "Any",
) -> ExecutionContext:
    """Load every resource below `root` for `environment` and run them."""
    return await Executor(config, **kwargs).execute(load_resources(root, environment))


def discover_names(root: "Path | str", environment: str = "") -> list[str]:
    """Names of the resources below `root`, in the order they would execute."""
    schedule = create_schedule(load_resources(root, environment))
    return [resource.name for resource in schedule]
