"""Shared test fixtures for gateway-graph tests."""

from typing import Any

import pytest

GATEWAY_API = "gateway.networking.k8s.io/v1"


@pytest.fixture
def sample_gateway_class() -> dict[str, Any]:
    """Sample GatewayClass resource."""
    return {
        "apiVersion": GATEWAY_API,
        "kind": "GatewayClass",
        "metadata": {"name": "example"},
        "spec": {"controllerName": "example.com/gateway-controller"},
    }


@pytest.fixture
def sample_gateway() -> dict[str, Any]:
    """Sample Gateway with one HTTP listener."""
    return {
        "apiVersion": GATEWAY_API,
        "kind": "Gateway",
        "metadata": {"name": "gw", "namespace": "default"},
        "spec": {
            "gatewayClassName": "example",
            "listeners": [{"name": "http", "port": 80, "protocol": "HTTP"}],
        },
    }


@pytest.fixture
def sample_route() -> dict[str, Any]:
    """Sample HTTPRoute attached to gw/http with one backend."""
    return {
        "apiVersion": GATEWAY_API,
        "kind": "HTTPRoute",
        "metadata": {"name": "r1", "namespace": "default"},
        "spec": {
            "parentRefs": [{"name": "gw", "sectionName": "http"}],
            "hostnames": ["example.com"],
            "rules": [
                {
                    "matches": [{"path": {"type": "PathPrefix", "value": "/"}}],
                    "backendRefs": [{"name": "svc1", "port": 80}],
                }
            ],
        },
    }


@pytest.fixture
def sample_service() -> dict[str, Any]:
    """Sample Service selecting app=demo."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "svc1", "namespace": "default"},
        "spec": {"selector": {"app": "demo"}, "ports": [{"port": 80, "targetPort": 8080}]},
    }


@pytest.fixture
def sample_deployment() -> dict[str, Any]:
    """Sample Deployment with pod template labels app=demo."""
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": "demo", "namespace": "default"},
        "spec": {
            "selector": {"matchLabels": {"app": "demo"}},
            "template": {
                "metadata": {"labels": {"app": "demo", "tier": "web"}},
                "spec": {"containers": [{"name": "demo", "image": "demo:1.0"}]},
            },
        },
    }


@pytest.fixture
def sample_reference_grant() -> dict[str, Any]:
    """ReferenceGrant in 'backends' allowing HTTPRoutes from 'apps' to any Service."""
    return {
        "apiVersion": "gateway.networking.k8s.io/v1beta1",
        "kind": "ReferenceGrant",
        "metadata": {"name": "allow-apps", "namespace": "backends"},
        "spec": {
            "from": [{"group": "gateway.networking.k8s.io", "kind": "HTTPRoute", "namespace": "apps"}],
            "to": [{"group": "", "kind": "Service"}],
        },
    }


def _gateway_manifest(name: str, namespace: str = "default", listeners=None, class_name=None):
    """Manifest-shaped Gateway."""
    spec: dict[str, Any] = {"listeners": listeners or []}
    if class_name:
        spec["gatewayClassName"] = class_name
    return {
        "apiVersion": GATEWAY_API,
        "kind": "Gateway",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


def _route_manifest(
    name: str,
    namespace: str = "default",
    parent_refs=None,
    backend_refs=None,
    kind: str = "HTTPRoute",
):
    """Manifest-shaped route of any kind."""
    spec: dict[str, Any] = {"parentRefs": parent_refs or []}
    if backend_refs is not None:
        spec["rules"] = [{"backendRefs": backend_refs}]
    return {
        "apiVersion": GATEWAY_API,
        "kind": kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


def _service_manifest(name: str, namespace: str = "default", selector=None):
    """Manifest-shaped Service."""
    spec: dict[str, Any] = {"ports": [{"port": 80}]}
    if selector is not None:
        spec["selector"] = selector
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": name, "namespace": namespace},
        "spec": spec,
    }


@pytest.fixture
def make_gateway():
    """Factory for Gateway manifests."""
    return _gateway_manifest


@pytest.fixture
def make_route():
    """Factory for route manifests."""
    return _route_manifest


@pytest.fixture
def make_service():
    """Factory for Service manifests."""
    return _service_manifest
