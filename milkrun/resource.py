from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    PositiveFloat,
    Tag,
    TypeAdapter,
    field_validator,
)

API_VERSION = "milk/alphav1"
ENVIRONMENT_LABEL = "environment"


class Kind(str, Enum):
    REQUEST = "Request"
    SCRIPT = "Script"


class OnError(str, Enum):
    ABORT = "abort"
    CONTINUE = "continue"


class _Model(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


def _label_text(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)

    return value


class Metadata(_Model):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    labels: dict[str, str | None] = Field(default_factory=dict)
    path: str | None = None
    """Where the resource was loaded from, for diagnostics."""

    @field_validator("labels", mode="before")
    @classmethod
    def _text_labels(cls, value: Any) -> Any:
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value

        # YAML reads `version: 2` or `enabled: true` as scalars, labels are text
        return {_label_text(key): _label_text(label) for key, label in value.items()}


class Spec(_Model):
    depends_on: frozenset[str] = Field(default_factory=frozenset, alias="dependsOn")
    on_error: OnError | None = Field(default=None, alias="onError")
    """Overrides the failure policy configured for the resource's kind."""

    timeout: PositiveFloat | None = None
    """Overrides the configured per-resource timeout, in seconds."""

    @field_validator("depends_on", mode="before")
    @classmethod
    def _empty_depends_on(cls, value: Any) -> Any:
        return frozenset() if value is None else value


class RequestSpec(Spec):
    scheme: Literal["http", "https"] = "https"
    host: str
    route: str = "/"
    method: Literal["GET", "POST"] = "GET"
    headers: dict[str, str | int | float | bool] = Field(default_factory=dict)
    body: str | dict[str, Any] | list[Any] | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class ScriptSpec(Spec):
    script: str


class Resource(_Model):
    model_config = ConfigDict(extra="ignore")

    api_version: str = Field(alias="apiVersion")
    kind: Kind
    metadata: Metadata
    spec: Spec

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def labels(self) -> dict[str, str | None]:
        return self.metadata.labels

    @property
    def environment(self) -> str:
        return self.metadata.labels.get(ENVIRONMENT_LABEL) or ""

    @property
    def depends_on(self) -> frozenset[str]:
        return self.spec.depends_on

    @property
    def source_path(self) -> str | None:
        return self.metadata.path

    def __str__(self) -> str:
        return f"{self.kind.value}/{self.name}"


class RequestResource(Resource):
    spec: RequestSpec


class ScriptResource(Resource):
    spec: ScriptSpec


def _kind_tag(value: Any) -> str | None:
    if isinstance(value, dict):
        kind = value.get("kind")
    else:
        kind = getattr(value, "kind", None)

    return kind.value if isinstance(kind, Kind) else kind


AnyResource = Annotated[
    Union[
        Annotated[RequestResource, Tag(Kind.REQUEST.value)],
        Annotated[ScriptResource, Tag(Kind.SCRIPT.value)],
    ],
    Discriminator(_kind_tag),
]

resource_adapter: TypeAdapter[RequestResource | ScriptResource] = TypeAdapter(
    AnyResource
)
