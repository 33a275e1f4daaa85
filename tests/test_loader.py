"""Tests for gateway_graph.loader."""

import logging

import pytest
import yaml

from gateway_graph.loader import (
    collect_resources,
    load_and_build,
    load_directory,
    parse_documents,
    supported_kinds,
)
from gateway_graph.models import GRPCRoute, HTTPRoute, LoadOptions

MANIFESTS = """
apiVersion: gateway.networking.k8s.io/v1
kind: Gateway
metadata:
  name: gw
  namespace: default
spec:
  gatewayClassName: example
  listeners:
    - name: http
      port: 80
      protocol: HTTP
---
apiVersion: gateway.networking.k8s.io/v1
kind: HTTPRoute
metadata:
  name: web
  namespace: default
spec:
  parentRefs:
    - name: gw
      sectionName: http
  rules:
    - backendRefs:
        - name: web
          port: 80
---
apiVersion: v1
kind: Service
metadata:
  name: web
spec:
  selector:
    app: web
  ports:
    - port: 80
---
apiVersion: v1
kind: ConfigMap
metadata:
  name: ignored
"""


def test_parse_documents_skips_empty():
    """Empty documents between separators are dropped."""
    docs = parse_documents("---\nkind: Gateway\n---\n---\nkind: Service\n")
    assert [doc["kind"] for doc in docs] == ["Gateway", "Service"]


def test_parse_documents_invalid_yaml():
    """Broken YAML raises."""
    with pytest.raises(yaml.YAMLError):
        parse_documents("kind: [unclosed")


def test_collect_resources_dispatches_on_kind():
    """Documents land in the collection for their kind."""
    resources = collect_resources(parse_documents(MANIFESTS))

    assert [gw.name for gw in resources.gateways] == ["gw"]
    assert [svc.name for svc in resources.services] == ["web"]
    assert len(resources.routes) == 1
    assert isinstance(resources.routes[0], HTTPRoute)


def test_collect_resources_skips_malformed(caplog):
    """Documents without identity are dropped with a warning."""
    docs = [
        "just a string",
        {"kind": "HTTPRoute", "metadata": {}},
        {"kind": "GRPCRoute", "metadata": {"name": "rpc"}},
        {"metadata": {"name": "no-kind"}},
    ]

    with caplog.at_level(logging.WARNING, logger="gateway_graph.loader"):
        resources = collect_resources(docs, source="test.yaml")

    assert len(resources.routes) == 1
    assert isinstance(resources.routes[0], GRPCRoute)
    assert "non-object" in caplog.text
    assert "invalid HTTPRoute" in caplog.text


NULLS = """
apiVersion: gateway.networking.k8s.io/v1
kind: Gateway
metadata:
  name: gw
spec:
  gatewayClassName: example
  listeners:
---
apiVersion: gateway.networking.k8s.io/v1
kind: HTTPRoute
metadata:
  name: attached
spec:
  parentRefs:
    - name: gw
  rules:
    - backendRefs:
---
apiVersion: gateway.networking.k8s.io/v1
kind: HTTPRoute
metadata:
  name: detached
spec:
  parentRefs:
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: api
  labels:
spec:
  template:
    metadata:
      labels:
        app: api
        version: 2
"""


def test_collect_resources_keeps_documents_with_empty_keys(caplog):
    """Keys without a value do not drop the document."""
    with caplog.at_level(logging.WARNING, logger="gateway_graph.loader"):
        resources = collect_resources(parse_documents(NULLS), source="nulls.yaml")

    assert caplog.text == ""
    assert [gw.name for gw in resources.gateways] == ["gw"]
    assert resources.gateways[0].spec.listeners == []
    assert [route.name for route in resources.routes] == ["attached", "detached"]
    assert resources.routes[1].parent_refs == []
    assert list(resources.routes[0].iter_backend_refs()) == []
    assert resources.deployments[0].template_labels == {"app": "api", "version": "2"}
    assert resources.deployments[0].metadata.labels == {}


def test_supported_kinds():
    """Every route kind is loadable."""
    kinds = supported_kinds()
    for kind in ("HTTPRoute", "GRPCRoute", "TLSRoute", "TCPRoute", "ReferenceGrant"):
        assert kind in kinds


def test_load_directory_sorted_and_filtered(tmp_path):
    """Only YAML files are read, in sorted order."""
    (tmp_path / "b.yaml").write_text(
        "kind: HTTPRoute\nmetadata:\n  name: second\n", encoding="utf-8"
    )
    (tmp_path / "a.yml").write_text(
        "kind: HTTPRoute\nmetadata:\n  name: first\n", encoding="utf-8"
    )
    (tmp_path / "notes.txt").write_text("kind: HTTPRoute\nmetadata:\n  name: skip\n", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.yaml").write_text("kind: HTTPRoute\nmetadata:\n  name: third\n", encoding="utf-8")

    flat = load_directory(LoadOptions(data_dir=tmp_path))
    deep = load_directory(LoadOptions(data_dir=tmp_path, recursive=True))

    assert [route.name for route in flat.routes] == ["first", "second"]
    assert [route.name for route in deep.routes] == ["first", "second", "third"]


def test_load_directory_missing_dir(tmp_path, caplog):
    """A missing directory yields no resources."""
    with caplog.at_level(logging.WARNING, logger="gateway_graph.loader"):
        resources = load_directory(LoadOptions(data_dir=tmp_path / "absent"))

    assert resources.gateways == []
    assert resources.routes == []
    assert "not found" in caplog.text


def test_load_directory_skips_unparsable_file(tmp_path):
    """One broken file does not hide the others."""
    (tmp_path / "bad.yaml").write_text("kind: [unclosed", encoding="utf-8")
    (tmp_path / "good.yaml").write_text(MANIFESTS, encoding="utf-8")

    resources = load_directory(LoadOptions(data_dir=tmp_path))

    assert len(resources.gateways) == 1


def test_load_and_build(tmp_path):
    """Loading and building end to end."""
    (tmp_path / "all.yaml").write_text(MANIFESTS, encoding="utf-8")

    graph = load_and_build(LoadOptions(data_dir=tmp_path))

    assert graph.summary.routes == 1
    assert graph.summary.covered_routes == 1
    assert graph.summary.resolved_backends == 1
    assert graph.get_node("gatewayclass:example") is not None


def test_load_and_build_uses_data_dir_env(tmp_path, monkeypatch):
    """Without options DATA_DIR is used."""
    (tmp_path / "all.yaml").write_text(MANIFESTS, encoding="utf-8")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))

    graph = load_and_build()

    assert graph.summary.gateways == 1
