"""
Substitution of execution context values into resource templates.

Templates use jinja2 syntax and are rendered with `StrictUndefined`, so a
placeholder that does not resolve raises instead of rendering an empty string:

    route: /users/{{ login.body.id }}
    headers:
      Authorization: Bearer {{ login.body.token }}
"""

from collections.abc import Mapping
from typing import Any

from jinja2 import BaseLoader, Environment, StrictUndefined

_JINJA_ENV = Environment(
    loader=BaseLoader(),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def render_string(template: str, values: Mapping[str, Any]) -> str:
    if "{{" not in template and "{%" not in template:
        return template

    return _JINJA_ENV.from_string(template).render(values)


def render_object(obj: Any, values: Mapping[str, Any]) -> Any:
    """Render every string found in `obj`, recursing into mappings and sequences."""
    if isinstance(obj, str):
        return render_string(obj, values)
    elif isinstance(obj, Mapping):
        return {
            render_object(key, values): render_object(value, values)
            for key, value in obj.items()
        }
    elif isinstance(obj, list | tuple):
        return type(obj)(render_object(item, values) for item in obj)

    return obj
