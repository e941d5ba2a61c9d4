"""
Discovery and validation of resource definitions stored as YAML files.
"""

import logging
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import ValidationError

from .exceptions import DuplicateResourceName, MalformedResource
from .resource import API_VERSION, resource_adapter

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable

    from .resource import Resource

logger = logging.getLogger(__name__)

RESOURCE_PATTERNS = ("*.yml", "*.yaml")


def discover_paths(root: "Path | str") -> list[Path]:
    """Find every resource file below `root`, in a reproducible order."""
    base = Path(root).resolve()
    paths = {path for pattern in RESOURCE_PATTERNS for path in base.rglob(pattern)}
    return sorted(path for path in paths if path.is_file())


def parse_resource(path: "Path | str") -> "Resource":
    path = Path(path)

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedResource(path, f"cannot be read ({e})") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedResource(path, f"invalid YAML ({e})") from e

    if not isinstance(data, dict):
        raise MalformedResource(path, "document is not a mapping")
    if not data.get("apiVersion"):
        raise MalformedResource(path, "apiVersion is not defined")

    metadata = data.get("metadata")
    if not isinstance(metadata, dict) or not metadata.get("name"):
        raise MalformedResource(path, "metadata.name is not defined")
    if not data.get("kind"):
        raise MalformedResource(path, "kind is not defined")

    # provenance is stamped before validation since resources are immutable
    data = {**data, "metadata": {**metadata, "path": str(path)}}

    try:
        resource = resource_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedResource(path, str(e)) from e

    if resource.api_version != API_VERSION:
        logger.warning(
            "%s declares unknown apiVersion '%s' (expected '%s')",
            path,
            resource.api_version,
            API_VERSION,
        )

    return resource


def matches_environment(resource: "Resource", environment: str) -> bool:
    """
    Unlabeled resources apply everywhere, and an empty environment applies to every
    resource.
    """
    return (
        resource.environment == ""
        or environment == ""
        or resource.environment == environment
    )


def filter_environment(
    resources: "Iterable[Resource]", environment: str
) -> list["Resource"]:
    return [r for r in resources if matches_environment(r, environment)]


def duplicates(names: "Iterable[str]") -> list[str]:
    return sorted(name for name, count in Counter(names).items() if count > 1)


def validate_names(resources: list["Resource"]) -> list["Resource"]:
    if dupes := duplicates(r.name for r in resources):
        raise DuplicateResourceName(dupes)

    return resources


def load_resources(root: "Path | str", environment: str = "") -> list["Resource"]:
    """
    Load every resource below `root` that applies to `environment`. Names are
    validated after filtering, so only resources that would share a single run
    can collide.
    """
    resources = filter_environment(
        (parse_resource(path) for path in discover_paths(root)), environment
    )
    logger.debug(
        "Loaded %d resources from %s (environment=%r)",
        len(resources),
        root,
        environment,
    )
    return validate_names(resources)
