from typing import TYPE_CHECKING

import httpx
from jinja2 import TemplateError

from milkrun.context import RequestResult
from milkrun.exceptions import RequestExecutionError
from milkrun.resource import Kind
from milkrun.templating import render_object, render_string

from .base import Handler

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from milkrun.config import Config
    from milkrun.context import ExecutionContext
    from milkrun.resource import RequestResource
    from milkrun.scripting import ScriptConsole


def _header_value(value: "Any") -> str:
    if isinstance(value, bool):
        return "true" if value else "false"

    return str(value)


def _decode_body(response: httpx.Response) -> "Any":
    if "json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            pass

    return response.text


class RequestHandler(Handler):
    kind = Kind.REQUEST
    error_class = RequestExecutionError
    # httpx raises ValueError or TypeError for headers and bodies it cannot encode
    expected_errors = (
        httpx.HTTPError,
        httpx.InvalidURL,
        TemplateError,
        ValueError,
        TypeError,
    )

    def __init__(self, config: "Config", client: httpx.AsyncClient) -> None:
        super().__init__(config)
        self.client = client

    async def execute(
        self,
        resource: "RequestResource",
        context: "ExecutionContext",
        console: "ScriptConsole",
    ) -> None:
        spec = resource.spec
        values = context.values_for_templates()

        url = render_string(f"{spec.scheme}://{spec.host}{spec.route}", values)
        headers = {
            render_string(key, values): _header_value(render_object(value, values))
            for key, value in spec.headers.items()
        }

        payload: dict[str, Any] = {}
        if isinstance(spec.body, str):
            payload["content"] = render_string(spec.body, values)
        elif spec.body is not None:
            payload["json"] = render_object(spec.body, values)

        response = await self.client.request(
            spec.method, url, headers=headers, **payload
        )
        console.log(f"{spec.method} {url} {response.status_code}")

        context[resource.name] = RequestResult(
            status=response.status_code,
            response=response,
            body=_decode_body(response),
        )
