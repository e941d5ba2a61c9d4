from typing import TYPE_CHECKING

from milkrun.context import ScriptResult
from milkrun.exceptions import ScriptExecutionError
from milkrun.resource import Kind
from milkrun.scripting import Sandbox, Tester
from milkrun.templating import render_string

from .base import Handler

if TYPE_CHECKING:  # pragma: no cover
    from milkrun.config import Config
    from milkrun.context import ExecutionContext
    from milkrun.resource import ScriptResource
    from milkrun.scripting import ScriptConsole


class ScriptHandler(Handler):
    kind = Kind.SCRIPT
    error_class = ScriptExecutionError
    # scripts are user code, any failure inside them belongs to the resource
    expected_errors = (Exception,)

    def __init__(self, config: "Config", sandbox: Sandbox | None = None) -> None:
        super().__init__(config)
        self.sandbox = sandbox or Sandbox()

    async def execute(
        self,
        resource: "ScriptResource",
        context: "ExecutionContext",
        console: "ScriptConsole",
    ) -> None:
        # literal `{{` or `{%` in the source needs a `{% raw %}` block
        source = render_string(resource.spec.script, context.values_for_templates())

        return_value = await self.sandbox.run(
            source,
            context=context,
            console=console,
            test=Tester(console),
            filename=resource.source_path or f"<{resource}>",
        )

        # a script may publish its own entry through the context binding
        if resource.name not in context:
            context[resource.name] = ScriptResult(return_value=return_value)
