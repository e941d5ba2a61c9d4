from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from .resource import Kind

if TYPE_CHECKING:  # pragma: no cover
    import httpx


@dataclass(kw_only=True, frozen=True, slots=True)
class RequestResult:
    status: int
    response: "httpx.Response" = field(repr=False)
    body: Any = None
    kind: Literal[Kind.REQUEST] = Kind.REQUEST


@dataclass(kw_only=True, frozen=True, slots=True)
class ScriptResult:
    return_value: Any = None
    kind: Literal[Kind.SCRIPT] = Kind.SCRIPT


class ExecutionContext(MutableMapping[str, Any]):
    """
    Results produced during a single run, keyed by resource name. Entries are only
    ever written by the resource currently executing and are visible to every
    resource scheduled after it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def __getitem__(self, name: str) -> Any:
        return self._entries[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._entries[name] = value

    def __delitem__(self, name: str) -> None:
        del self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ExecutionContext({self._entries!r})"

    def set(self, name: str, value: Any) -> None:
        self[name] = value

    def has(self, name: str) -> bool:
        return name in self._entries

    def values_for_templates(self) -> dict[str, Any]:
        """A flat snapshot of the entries for rendering templates."""
        return dict(self._entries)
