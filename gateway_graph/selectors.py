import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from gateway_graph.models import DaemonSet, Deployment, Service, StatefulSet

logger = logging.getLogger(__name__)


class Workload(BaseModel):
    """A Deployment, StatefulSet or DaemonSet reduced to what selectors need."""

    kind: str
    name: str
    namespace: str
    labels: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


def flatten_workloads(
    deployments: Iterable[Deployment] = (),
    stateful_sets: Iterable[StatefulSet] = (),
    daemon_sets: Iterable[DaemonSet] = (),
) -> list[Workload]:
    """
    Flatten workload resources into one list, keyed by pod template labels.

    Order is deployments, then stateful sets, then daemon sets, each in
    input order.
    """
    workloads: list[Workload] = []
    for group in (deployments, stateful_sets, daemon_sets):
        for resource in group:
            workloads.append(
                Workload(
                    kind=resource.kind,
                    name=resource.name,
                    namespace=resource.namespace,
                    labels=resource.template_labels,
                )
            )
    return workloads


def selector_matches(selector: dict[str, str] | None, labels: dict[str, str]) -> bool:
    """
    Equality-based label selection.

    Every selector pair must be present in ``labels`` with the same value.
    An empty or missing selector selects nothing.
    """
    if not selector:
        return False
    return all(labels.get(key) == value for key, value in selector.items())


def match_workloads(service: Service, workloads: Iterable[Workload]) -> list[Workload]:
    """Return the workloads in the service's namespace that its selector selects."""
    selector = service.spec.selector
    if not selector:
        return []

    matched = [
        workload
        for workload in workloads
        if workload.namespace == service.namespace and selector_matches(selector, workload.labels)
    ]

    if matched:
        logger.debug(
            f"Service {service.namespace}/{service.name} selects "
            f"{len(matched)} workload(s): {', '.join(w.name for w in matched)}"
        )

    return matched
