"""Tests for gateway_graph.selectors."""

from gateway_graph.models import DaemonSet, Deployment, Service, StatefulSet
from gateway_graph.selectors import (
    Workload,
    flatten_workloads,
    match_workloads,
    selector_matches,
)


def test_selector_matches_subset():
    """Every selector pair must be present with the same value."""
    labels = {"app": "demo", "tier": "web"}

    assert selector_matches({"app": "demo"}, labels) is True
    assert selector_matches({"app": "demo", "tier": "web"}, labels) is True
    assert selector_matches({"app": "other"}, labels) is False
    assert selector_matches({"app": "demo", "env": "prod"}, labels) is False


def test_empty_selector_matches_nothing():
    """Empty or missing selectors never select."""
    assert selector_matches({}, {"app": "demo"}) is False
    assert selector_matches(None, {"app": "demo"}) is False


def test_no_wildcards():
    """Values are compared literally."""
    assert selector_matches({"app": "*"}, {"app": "demo"}) is False


def test_flatten_workloads_order_and_labels(sample_deployment):
    """Deployments, then StatefulSets, then DaemonSets; labels from the pod template."""
    deployment = Deployment.model_validate(sample_deployment)
    stateful_set = StatefulSet.model_validate({"metadata": {"name": "db", "namespace": "data"}})
    daemon_set = DaemonSet.model_validate(
        {
            "metadata": {"name": "agent"},
            "spec": {"template": {"metadata": {"labels": {"app": "agent"}}}},
        }
    )

    workloads = flatten_workloads([deployment], [stateful_set], [daemon_set])

    assert [(w.kind, w.name, w.namespace) for w in workloads] == [
        ("Deployment", "demo", "default"),
        ("StatefulSet", "db", "data"),
        ("DaemonSet", "agent", "default"),
    ]
    assert workloads[0].labels == {"app": "demo", "tier": "web"}
    assert workloads[1].labels == {}


def test_match_workloads_same_namespace_only(sample_service):
    """Only workloads in the service namespace are considered."""
    service = Service.model_validate(sample_service)
    workloads = [
        Workload(kind="Deployment", name="demo", namespace="default", labels={"app": "demo"}),
        Workload(kind="Deployment", name="demo", namespace="other", labels={"app": "demo"}),
        Workload(kind="DaemonSet", name="logs", namespace="default", labels={"app": "logs"}),
    ]

    matched = match_workloads(service, workloads)

    assert [(w.name, w.namespace) for w in matched] == [("demo", "default")]


def test_match_workloads_without_selector():
    """Services without a selector select nothing."""
    service = Service.model_validate({"metadata": {"name": "external"}, "spec": {"type": "ExternalName"}})
    workloads = [Workload(kind="Deployment", name="demo", namespace="default", labels={"app": "demo"})]

    assert match_workloads(service, workloads) == []
