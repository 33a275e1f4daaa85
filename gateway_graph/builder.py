import logging
from collections.abc import Iterable, Mapping
from typing import Any

import networkx as nx
from pydantic import ValidationError

from gateway_graph.grants import ReferenceGrantIndex
from gateway_graph.models import (
    AnyRoute,
    BackendResolution,
    CoverageGraph,
    CoverageSummary,
    DaemonSet,
    Deployment,
    EdgeType,
    Gateway,
    GatewayClass,
    GraphEdge,
    GraphNode,
    InvalidResourceError,
    NodeType,
    ObjectRef,
    ReferenceGrant,
    ResourceSet,
    RouteCoverageDetail,
    Service,
    StatefulSet,
)
from gateway_graph.node_identity import NodeIdentity
from gateway_graph.selectors import Workload, flatten_workloads, match_workloads

logger = logging.getLogger(__name__)


class GraphBuilder:
    """
    Builds the gateway coverage graph from a snapshot of resources.

    The build runs in phases:
    - GatewayClasses, Gateways and their listeners
    - Services and the workloads their selectors pick
    - Routes: parent gateways/listeners and backend services
    - Summary aggregation over the per-route outcomes

    Broken references never raise. A parentRef to a missing gateway still
    gets a placeholder gateway node and a ``routes`` edge and is reported in
    ``missingParentRefs``; a backendRef to a missing service gets no node or
    edge and is reported in ``missingBackends``.

    The builder keeps no state between calls: every ``build`` allocates its
    own graph, so one instance can serve concurrent callers.

    Example:
        >>> builder = GraphBuilder()
        >>> graph = builder.build(ResourceSet(gateways=[gw], routes=[route]))
        >>> graph.summary.coverage_percent
        100.0
    """

    def __init__(self) -> None:
        self.node_identity = NodeIdentity()

    def build(self, resources: ResourceSet) -> CoverageGraph:
        """
        Build the coverage graph for ``resources``.

        Args:
            resources: Typed resource snapshot

        Returns:
            CoverageGraph with nodes and edges in input order
        """
        graph = nx.MultiDiGraph()

        self._add_gateway_classes(graph, resources.gateway_classes)
        self._add_gateways(graph, resources.gateways)

        workloads = flatten_workloads(
            resources.deployments, resources.stateful_sets, resources.daemon_sets
        )
        self._add_services(graph, resources.services, workloads)

        gateway_keys = {(gw.namespace, gw.name) for gw in resources.gateways}
        services_by_key = {(svc.namespace, svc.name): svc for svc in resources.services}
        grant_index = ReferenceGrantIndex(resources.reference_grants)
        logger.debug(f"Indexed {len(grant_index)} ReferenceGrant(s)")

        route_coverage = [
            self._add_route(graph, route, gateway_keys, services_by_key, grant_index)
            for route in resources.routes
        ]

        summary = self._summarize(resources, workloads, route_coverage)

        coverage_graph = CoverageGraph(
            nodes=self._project_nodes(graph),
            edges=self._project_edges(graph),
            summary=summary,
            route_coverage=route_coverage,
        )

        logger.info(
            f"Built coverage graph with {len(coverage_graph.nodes)} nodes and "
            f"{len(coverage_graph.edges)} edges; {summary.covered_routes}/{summary.routes} "
            f"routes covered, {summary.missing_backends} missing backends"
        )

        return coverage_graph

    def _add_gateway_classes(self, graph: nx.MultiDiGraph, classes: list[GatewayClass]) -> None:
        for gateway_class in classes:
            self._ensure_node(
                graph,
                self.node_identity.gateway_class_id(gateway_class.name),
                NodeType.GATEWAY_CLASS,
                gateway_class.name,
            )

    def _add_gateways(self, graph: nx.MultiDiGraph, gateways: list[Gateway]) -> None:
        for gateway in gateways:
            gateway_id = self.node_identity.gateway_id(gateway.namespace, gateway.name)
            self._ensure_node(graph, gateway_id, NodeType.GATEWAY, gateway.name)

            class_name = gateway.spec.gateway_class_name
            if class_name:
                class_id = self.node_identity.gateway_class_id(class_name)
                if self._ensure_node(graph, class_id, NodeType.GATEWAY_CLASS, class_name):
                    logger.debug(f"Synthesized GatewayClass node {class_id} for {gateway_id}")
                self._add_edge(
                    graph,
                    self.node_identity.edge_id(gateway_id, class_id),
                    gateway_id,
                    class_id,
                    EdgeType.CLASS_OF,
                )

            for listener in gateway.spec.listeners:
                listener_id = self.node_identity.listener_id(gateway_id, listener.key)
                data: dict[str, Any] = {"port": listener.port, "protocol": listener.protocol}
                if listener.hostname:
                    data["hostname"] = listener.hostname
                self._ensure_node(graph, listener_id, NodeType.LISTENER, listener.key, data)
                self._add_edge(
                    graph,
                    self.node_identity.edge_id(gateway_id, listener_id),
                    gateway_id,
                    listener_id,
                    EdgeType.OWNS,
                )

    def _add_services(
        self,
        graph: nx.MultiDiGraph,
        services: list[Service],
        workloads: list[Workload],
    ) -> None:
        for service in services:
            service_id = self.node_identity.service_id(service.namespace, service.name)
            self._ensure_node(graph, service_id, NodeType.SERVICE, service.name)

            for workload in match_workloads(service, workloads):
                workload_id = self.node_identity.workload_id(
                    workload.namespace, workload.kind, workload.name
                )
                self._ensure_node(
                    graph, workload_id, NodeType.WORKLOAD, workload.name, {"kind": workload.kind}
                )
                self._add_edge(
                    graph,
                    self.node_identity.edge_id(service_id, workload_id),
                    service_id,
                    workload_id,
                    EdgeType.SERVES,
                )

    def _add_route(
        self,
        graph: nx.MultiDiGraph,
        route: AnyRoute,
        gateway_keys: set[tuple[str, str]],
        services_by_key: dict[tuple[str, str], Service],
        grant_index: ReferenceGrantIndex,
    ) -> RouteCoverageDetail:
        namespace = route.namespace
        route_id = self.node_identity.route_id(namespace, route.name)
        self._ensure_node(graph, route_id, NodeType.ROUTE, route.name, {"kind": route.kind})

        parent_ids: list[str] = []
        missing_parents: list[ObjectRef] = []

        for parent in route.parent_refs:
            parent_namespace = parent.namespace or namespace
            gateway_id = self.node_identity.gateway_id(parent_namespace, parent.name)

            if (parent_namespace, parent.name) not in gateway_keys:
                missing_parents.append(ObjectRef(name=parent.name, namespace=parent_namespace))
                if self._ensure_node(
                    graph, gateway_id, NodeType.GATEWAY, parent.name, {"placeholder": True}
                ):
                    logger.debug(f"Route {route_id} references missing gateway {gateway_id}")

            target_id = gateway_id
            if parent.section_name:
                target_id = self.node_identity.listener_id(gateway_id, parent.section_name)
                if self._ensure_node(
                    graph,
                    target_id,
                    NodeType.LISTENER,
                    parent.section_name,
                    {"placeholder": True},
                ):
                    self._add_edge(
                        graph,
                        self.node_identity.edge_id(gateway_id, target_id),
                        gateway_id,
                        target_id,
                        EdgeType.OWNS,
                    )

            self._add_edge(
                graph,
                self.node_identity.edge_id(route_id, target_id),
                route_id,
                target_id,
                EdgeType.ROUTES,
            )
            parent_ids.append(target_id)

        backends: list[BackendResolution] = []
        missing_backends: list[ObjectRef] = []

        for backend in route.iter_backend_refs():
            target_namespace = backend.namespace or namespace
            service_id = self.node_identity.service_id(target_namespace, backend.name)
            resolved = (target_namespace, backend.name) in services_by_key
            cross_namespace = namespace != target_namespace
            granted = grant_index.allows(namespace, target_namespace, backend.kind, backend.name)

            if resolved:
                self._ensure_node(graph, service_id, NodeType.SERVICE, backend.name)
                self._add_edge(
                    graph,
                    self.node_identity.backend_edge_id(route_id, service_id, len(backends)),
                    route_id,
                    service_id,
                    EdgeType.BACKEND,
                    {"crossNamespace": cross_namespace, "granted": granted},
                )
                if cross_namespace and granted:
                    self._add_edge(
                        graph,
                        self.node_identity.grant_edge_id(route_id, service_id),
                        route_id,
                        service_id,
                        EdgeType.GRANT,
                        {"crossNamespace": True, "granted": True},
                    )
            else:
                missing_backends.append(ObjectRef(name=backend.name, namespace=target_namespace))
                logger.debug(f"Route {route_id} references missing service {service_id}")

            backends.append(
                BackendResolution(
                    id=service_id,
                    service=backend.name,
                    namespace=target_namespace,
                    resolved=resolved,
                    cross_namespace=cross_namespace,
                    granted=granted,
                )
            )

        return RouteCoverageDetail(
            id=route_id,
            name=route.name,
            namespace=namespace,
            kind=route.kind,
            covered=bool(parent_ids),
            parent_refs=parent_ids,
            missing_parent_refs=missing_parents or None,
            backend_refs=backends or None,
            missing_backends=missing_backends or None,
        )

    def _summarize(
        self,
        resources: ResourceSet,
        workloads: list[Workload],
        route_coverage: list[RouteCoverageDetail],
    ) -> CoverageSummary:
        covered = 0
        backend_refs = 0
        resolved = 0
        missing = 0

        for detail in route_coverage:
            if detail.covered:
                covered += 1
            for backend in detail.backend_refs or []:
                backend_refs += 1
                if backend.resolved:
                    resolved += 1
                else:
                    missing += 1

        total = len(route_coverage)
        return CoverageSummary(
            gateways=len(resources.gateways),
            routes=total,
            covered_routes=covered,
            uncovered_routes=total - covered,
            coverage_percent=(covered / total) * 100 if total else 0.0,
            services=len(resources.services),
            workloads=len(workloads),
            gateway_classes=len(resources.gateway_classes),
            reference_grants=len(resources.reference_grants),
            backend_refs=backend_refs,
            resolved_backends=resolved,
            missing_backends=missing,
        )

    def _ensure_node(
        self,
        graph: nx.MultiDiGraph,
        node_id: str,
        node_type: NodeType,
        label: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Add the node unless its id is already present. Returns True if added."""
        if graph.has_node(node_id):
            return False
        graph.add_node(node_id, type=node_type, label=label, data=data)
        return True

    def _add_edge(
        self,
        graph: nx.MultiDiGraph,
        edge_id: str,
        source: str,
        target: str,
        edge_type: EdgeType,
        data: dict[str, Any] | None = None,
    ) -> None:
        if graph.has_edge(source, target, key=edge_id):
            return
        graph.add_edge(
            source,
            target,
            key=edge_id,
            type=edge_type,
            data=data,
            seq=graph.number_of_edges(),
        )

    def _project_nodes(self, graph: nx.MultiDiGraph) -> list[GraphNode]:
        return [
            GraphNode(id=node_id, type=attrs["type"], label=attrs["label"], data=attrs["data"])
            for node_id, attrs in graph.nodes(data=True)
        ]

    def _project_edges(self, graph: nx.MultiDiGraph) -> list[GraphEdge]:
        edges = sorted(graph.edges(keys=True, data=True), key=lambda edge: edge[3]["seq"])
        return [
            GraphEdge(id=key, source=source, target=target, type=attrs["type"], data=attrs["data"])
            for source, target, key, attrs in edges
        ]


def _format_location(location: tuple[Any, ...]) -> str:
    path = ""
    for part in location:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def coerce_resources(
    gateways: Iterable[Gateway | Mapping[str, Any]] = (),
    routes: Iterable[AnyRoute | Mapping[str, Any]] = (),
    services: Iterable[Service | Mapping[str, Any]] | None = None,
    deployments: Iterable[Deployment | Mapping[str, Any]] | None = None,
    stateful_sets: Iterable[StatefulSet | Mapping[str, Any]] | None = None,
    daemon_sets: Iterable[DaemonSet | Mapping[str, Any]] | None = None,
    gateway_classes: Iterable[GatewayClass | Mapping[str, Any]] | None = None,
    reference_grants: Iterable[ReferenceGrant | Mapping[str, Any]] | None = None,
) -> ResourceSet:
    """
    Turn typed models or manifest-shaped mappings into a ResourceSet.

    Routes given as mappings are dispatched on their ``kind`` tag.

    Raises:
        InvalidResourceError: If an entry lacks identity fields or has the
            wrong shape (for example no ``metadata.name``)
    """
    collections = {
        "gateways": gateways,
        "routes": routes,
        "services": services,
        "deployments": deployments,
        "stateful_sets": stateful_sets,
        "daemon_sets": daemon_sets,
        "gateway_classes": gateway_classes,
        "reference_grants": reference_grants,
    }
    try:
        return ResourceSet.model_validate(
            {name: list(items) for name, items in collections.items() if items is not None}
        )
    except ValidationError as e:
        details = "; ".join(
            f"{_format_location(error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise InvalidResourceError(f"Invalid resource input: {details}") from e


def build_graph(
    gateways: Iterable[Gateway | Mapping[str, Any]] = (),
    routes: Iterable[AnyRoute | Mapping[str, Any]] = (),
    services: Iterable[Service | Mapping[str, Any]] | None = None,
    deployments: Iterable[Deployment | Mapping[str, Any]] | None = None,
    stateful_sets: Iterable[StatefulSet | Mapping[str, Any]] | None = None,
    daemon_sets: Iterable[DaemonSet | Mapping[str, Any]] | None = None,
    gateway_classes: Iterable[GatewayClass | Mapping[str, Any]] | None = None,
    reference_grants: Iterable[ReferenceGrant | Mapping[str, Any]] | None = None,
) -> CoverageGraph:
    """
    Build the full coverage graph from resource collections.

    Every collection other than gateways and routes is optional and
    defaults to empty.

    Example:
        >>> graph = build_graph(gateways=[gateway], routes=[route], services=[service])
        >>> graph.summary.covered_routes
        1
    """
    resources = coerce_resources(
        gateways=gateways,
        routes=routes,
        services=services,
        deployments=deployments,
        stateful_sets=stateful_sets,
        daemon_sets=daemon_sets,
        gateway_classes=gateway_classes,
        reference_grants=reference_grants,
    )
    return GraphBuilder().build(resources)


def build_coverage_graph(
    gateways: Iterable[Gateway | Mapping[str, Any]],
    routes: Iterable[AnyRoute | Mapping[str, Any]],
) -> CoverageGraph:
    """Gateways-and-routes only form of :func:`build_graph`."""
    return build_graph(gateways=gateways, routes=routes)
