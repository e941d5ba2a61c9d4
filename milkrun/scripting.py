"""
Sandboxed execution of Script resources.

A script is Python source run as the body of an `async def` receiving exactly three
bindings:

- `context`: the live `ExecutionContext`, readable and writable
- `console`: a `ScriptConsole` scoped to the running resource
- `test`: a `Tester` reporting through that console

Scripts may `await` and `return` at top level; the returned value becomes the
resource's result. The code runs against a curated set of builtins, and any
attribute or name starting with an underscore, as well as frame and code object
attributes, is refused at compile time with a `SyntaxError`. Nothing of the hosting
process is reachable except what the bindings expose.

Before it is compiled, the source is rendered as a jinja2 template against the
execution context, the same way request fields are. Literal `{{` or `{%` in a script,
such as a brace in an f-string, must be wrapped in `{% raw %}...{% endraw %}`:

    script: |
      {% raw %}return f"{{status}}={context['login'].status}"{% endraw %}
"""

import ast
import builtins
import inspect
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Mapping
    from types import CodeType
    from typing import Any

    from .context import ExecutionContext

_ENTRYPOINT = "__milkrun_script__"

SAFE_BUILTINS: "Mapping[str, Any]" = {
    name: getattr(builtins, name)
    for name in (
        "abs",
        "all",
        "any",
        "bool",
        "bytes",
        "dict",
        "divmod",
        "enumerate",
        "filter",
        "float",
        "format",
        "frozenset",
        "hash",
        "int",
        "isinstance",
        "issubclass",
        "iter",
        "len",
        "list",
        "map",
        "max",
        "min",
        "next",
        "range",
        "repr",
        "reversed",
        "round",
        "set",
        "slice",
        "sorted",
        "str",
        "sum",
        "tuple",
        "zip",
        "ArithmeticError",
        "AssertionError",
        "AttributeError",
        "Exception",
        "IndexError",
        "KeyError",
        "LookupError",
        "RuntimeError",
        "StopIteration",
        "TypeError",
        "ValueError",
        "ZeroDivisionError",
    )
}


class ScriptConsole:
    """Console-style diagnostic channel for a single resource."""

    def __init__(self, resource_name: str) -> None:
        self.resource_name = resource_name
        self.logger = logging.getLogger(f"milkrun.resource.{resource_name}")

    @staticmethod
    def _format(args: tuple["Any", ...]) -> str:
        return " ".join(str(arg) for arg in args)

    def log(self, *args: "Any") -> None:
        self.logger.info(self._format(args))

    info = log

    def debug(self, *args: "Any") -> None:
        self.logger.debug(self._format(args))

    def warn(self, *args: "Any") -> None:
        self.logger.warning(self._format(args))

    warning = warn

    def error(self, *args: "Any") -> None:
        self.logger.error(self._format(args))


class Tester:
    """
    Assertion helper available to scripts as `test`.

    `test(description, fn)` runs `fn` and reports PASS or FAIL without raising. When
    `fn` is a coroutine function the call returns an awaitable that must be awaited.
    `assert_true` and `assert_equal` raise `AssertionError` after reporting.
    """

    def __init__(self, console: ScriptConsole) -> None:
        self.console = console
        self.results: list[tuple[str, bool]] = []

    @property
    def passed(self) -> bool:
        return all(ok for _, ok in self.results)

    def _report(self, description: str, error: BaseException | None) -> bool:
        if error is None:
            self.console.log(f"PASS {description}")
        else:
            self.console.error(f"FAIL {description}: {error!r}")

        self.results.append((description, error is None))
        return error is None

    async def _finish(self, description: str, pending: "Any") -> bool:
        try:
            await pending
        except Exception as e:
            return self._report(description, e)

        return self._report(description, None)

    def __call__(self, description: str, fn: "Callable[[], Any]") -> "Any":
        try:
            outcome = fn()
        except Exception as e:
            return self._report(description, e)

        if inspect.isawaitable(outcome):
            return self._finish(description, outcome)

        return self._report(description, None)

    def assert_true(
        self, condition: "Any", message: str = "expected a truthy value"
    ) -> None:
        if not condition:
            self._report(message, AssertionError(message))
            raise AssertionError(message)

        self._report(message, None)

    def assert_equal(self, actual: "Any", expected: "Any", message: str = "") -> None:
        description = message or f"{actual!r} == {expected!r}"

        if actual != expected:
            error = AssertionError(f"{actual!r} != {expected!r}")
            self._report(description, error)
            raise error

        self._report(description, None)


# attributes reaching interpreter internals without a leading underscore
BLOCKED_ATTRIBUTES = frozenset(
    {
        "ag_code",
        "ag_frame",
        "co_code",
        "cr_code",
        "cr_frame",
        "f_back",
        "f_builtins",
        "f_code",
        "f_globals",
        "f_locals",
        "gi_code",
        "gi_frame",
        "gi_yieldfrom",
        "mro",
        "tb_frame",
        "tb_next",
    }
)


def _reject_private_access(tree: ast.AST, source: str, filename: str) -> None:
    """
    Refuse attribute access to private or dunder names, which would otherwise lead
    from any binding back to the host's modules and builtins.
    """
    lines = source.splitlines()

    for node in ast.walk(tree):
        if isinstance(node, ast.Attribute):
            names = [node.attr]
        elif isinstance(node, ast.MatchClass):
            names = node.kwd_attrs
        elif isinstance(node, ast.Name):
            names = [node.id] if node.id.startswith("__") else []
        else:
            continue

        for name in names:
            if name.startswith("_") or name in BLOCKED_ATTRIBUTES:
                lineno = getattr(node, "lineno", 1)
                text = lines[lineno - 1] if 0 < lineno <= len(lines) else None
                raise SyntaxError(
                    f"access to '{name}' is not allowed in scripts",
                    (filename, lineno, getattr(node, "col_offset", 0) + 1, text),
                )


class Sandbox:
    def __init__(self, allowed_builtins: "Mapping[str, Any] | None" = None) -> None:
        self.allowed_builtins = dict(
            SAFE_BUILTINS if allowed_builtins is None else allowed_builtins
        )

    def compile(self, source: str, filename: str = "<script>") -> "CodeType":
        """Compile `source` into a module defining the script's entrypoint."""
        tree = ast.parse(source, filename=filename, mode="exec")
        _reject_private_access(tree, source, filename)

        body = tree.body
        module = ast.parse(
            f"async def {_ENTRYPOINT}(context, console, test):\n    pass\n",
            filename=filename,
        )

        # top-level return and await become legal inside the async function
        if body:
            module.body[0].body = body

        return compile(ast.fix_missing_locations(module), filename, "exec")

    async def run(
        self,
        source: str,
        *,
        context: "ExecutionContext",
        console: ScriptConsole,
        test: Tester,
        filename: str = "<script>",
    ) -> "Any":
        namespace: dict[str, Any] = {"__builtins__": dict(self.allowed_builtins)}
        exec(self.compile(source, filename), namespace)

        return await namespace[_ENTRYPOINT](context, console, test)
