import logging
from textwrap import dedent

import pytest

from milkrun.exceptions import DuplicateResourceName, MalformedResource
from milkrun.loader import (
    discover_paths,
    duplicates,
    load_resources,
    matches_environment,
    parse_resource,
)
from milkrun.resource import Kind

from .factories import request, script


def _request_yaml(name: str, environment: str | None = None) -> str:
    labels = f"\n  labels:\n    environment: {environment}" if environment else ""
    return dedent(
        f"""\
        apiVersion: milk/alphav1
        kind: Request
        metadata:
          name: {name}"""
    ) + labels + dedent(
        """
        spec:
          host: api.test
          route: /things
        """
    )


def test_parse_request(write_resource):
    path = write_resource(
        "login.yml",
        dedent(
            """\
            apiVersion: milk/alphav1
            kind: Request
            metadata:
              name: login
              labels:
                environment: staging
                team: core
            spec:
              scheme: http
              host: localhost:8080
              route: /login
              method: post
              headers:
                Content-Type: application/json
                X-Retries: 3
              body: '{"user": "demo"}'
            """
        ),
    )

    resource = parse_resource(path)

    assert resource.kind is Kind.REQUEST
    assert resource.name == "login"
    assert resource.environment == "staging"
    assert resource.labels["team"] == "core"
    assert resource.source_path == str(path)
    assert resource.spec.method == "POST"
    assert resource.spec.headers == {"Content-Type": "application/json", "X-Retries": 3}
    assert resource.depends_on == frozenset()


def test_parse_script(write_resource):
    path = write_resource(
        "check.yaml",
        dedent(
            """\
            apiVersion: milk/alphav1
            kind: Script
            metadata:
              name: check
              labels:
            spec:
              dependsOn: [login]
              script: |
                console.log(context["login"].status)
            """
        ),
    )

    resource = parse_resource(path)

    assert resource.kind is Kind.SCRIPT
    assert resource.labels == {}
    assert resource.depends_on == {"login"}
    assert "console.log" in resource.spec.script


@pytest.mark.parametrize(
    ("content", "reason"),
    (
        ("kind: Script\nmetadata: {name: a}\nspec: {script: pass}", "apiVersion"),
        ("apiVersion: milk/alphav1\nkind: Script\nspec: {script: pass}", "metadata"),
        ("apiVersion: milk/alphav1\nmetadata: {name: a}\nspec: {}", "kind"),
        ("apiVersion: milk/alphav1\nkind: Job\nmetadata: {name: a}\nspec: {}", "Job"),
        ("apiVersion: milk/alphav1\nkind: Request\nmetadata: {name: a}\nspec: {}", "host"),
        ("- just\n- a list", "mapping"),
        ("apiVersion: [unclosed", "YAML"),
        (b"apiVersion: milk/alphav1\nkind: Script\n\xff\xfe", "cannot be read"),
    ),
    ids=(
        "no-api-version",
        "no-name",
        "no-kind",
        "unknown-kind",
        "invalid-spec",
        "not-a-mapping",
        "invalid-yaml",
        "not-utf8",
    ),
)
def test_parse_malformed(write_resource, content, reason):
    path = write_resource("bad.yml", content)

    with pytest.raises(MalformedResource, match=reason) as exc_info:
        parse_resource(path)

    assert exc_info.value.path == path


def test_unknown_api_version_warns(write_resource, caplog):
    path = write_resource(
        "a.yml", _request_yaml("a").replace("milk/alphav1", "milk/v2")
    )

    with caplog.at_level(logging.WARNING, logger="milkrun.loader"):
        parse_resource(path)

    assert "unknown apiVersion 'milk/v2'" in caplog.text


def test_discover_paths_recursive_and_sorted(write_resource, tmp_path):
    write_resource("b.yml", _request_yaml("b"))
    write_resource("nested/a.yaml", _request_yaml("a"))
    write_resource("a.yml", _request_yaml("c"))
    write_resource("notes.txt", "not a resource")

    paths = discover_paths(tmp_path)

    assert [p.relative_to(tmp_path.resolve()).as_posix() for p in paths] == [
        "a.yml",
        "b.yml",
        "nested/a.yaml",
    ]


@pytest.mark.parametrize(
    ("label", "environment", "expected"),
    (
        (None, "", True),
        (None, "prod", True),
        ("prod", "", True),
        ("prod", "prod", True),
        ("staging", "prod", False),
    ),
)
def test_matches_environment(label, environment, expected):
    resource = request("a", environment=label)

    assert matches_environment(resource, environment) is expected


def test_load_filters_environment(write_resource, tmp_path):
    write_resource("staging.yml", _request_yaml("staging-only", "staging"))
    write_resource("shared.yml", _request_yaml("shared"))

    resources = load_resources(tmp_path, "prod")

    assert [r.name for r in resources] == ["shared"]


def test_scalar_labels_read_as_text(write_resource, tmp_path):
    write_resource(
        "a.yml",
        dedent(
            """\
            apiVersion: milk/alphav1
            kind: Script
            metadata:
              name: yearly
              labels:
                environment: 2024
                version: 2
                enabled: true
                ratio: 0.5
            spec:
              script: pass
            """
        ),
    )
    write_resource("b.yml", _request_yaml("other", "2023"))

    (resource,) = load_resources(tmp_path, "2024")

    assert resource.name == "yearly"
    assert resource.environment == "2024"
    assert resource.labels == {
        "environment": "2024",
        "version": "2",
        "enabled": "true",
        "ratio": "0.5",
    }


def test_load_without_environment_keeps_everything(write_resource, tmp_path):
    write_resource("staging.yml", _request_yaml("staging-only", "staging"))
    write_resource("shared.yml", _request_yaml("shared"))

    assert {r.name for r in load_resources(tmp_path)} == {"staging-only", "shared"}


def test_load_duplicate_names(write_resource, tmp_path):
    write_resource("a.yml", _request_yaml("x"))
    write_resource("b.yml", _request_yaml("x"))
    write_resource("c.yml", _request_yaml("y"))

    with pytest.raises(DuplicateResourceName) as exc_info:
        load_resources(tmp_path)

    assert exc_info.value.names == ["x"]


def test_duplicates_checked_after_filtering(write_resource, tmp_path):
    write_resource("staging.yml", _request_yaml("x", "staging"))
    write_resource("prod.yml", _request_yaml("x", "prod"))

    assert [r.environment for r in load_resources(tmp_path, "prod")] == ["prod"]

    # without a filter both survive and only one can live in a run's context
    with pytest.raises(DuplicateResourceName, match="x"):
        load_resources(tmp_path)


def test_duplicates():
    assert duplicates(["a", "b", "a", "c", "b", "a"]) == ["a", "b"]
    assert duplicates([r.name for r in (request("a"), script("b"))]) == []
