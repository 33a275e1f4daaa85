"""
gateway-graph: coverage graphs for Kubernetes Gateway API resources.

Builds a node/edge graph showing which routes are attached to gateways,
which backend services they resolve to, and which cross-namespace
references are permitted by ReferenceGrants.
"""

from gateway_graph.builder import GraphBuilder, build_coverage_graph, build_graph, coerce_resources
from gateway_graph.export import export_json, load_json, to_networkx, unreachable_routes
from gateway_graph.grants import ReferenceGrantIndex, grant_allows
from gateway_graph.loader import collect_resources, load_and_build, load_directory, parse_documents
from gateway_graph.models import (
    AnyRoute,
    BackendRef,
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
    GRPCRoute,
    HTTPRoute,
    InvalidResourceError,
    Listener,
    LoadOptions,
    NodeType,
    ObjectRef,
    ParentRef,
    ReferenceGrant,
    ResourceSet,
    RouteCoverageDetail,
    Service,
    StatefulSet,
    TCPRoute,
    TLSRoute,
)
from gateway_graph.node_identity import NodeIdentity
from gateway_graph.selectors import Workload, flatten_workloads, match_workloads, selector_matches
from gateway_graph.validator import validate_coverage_graph
from gateway_graph.view import RouteCoverageView, compute_route_coverage_view

__version__ = "0.1.0"

__all__ = [
    "AnyRoute",
    "BackendRef",
    "BackendResolution",
    "CoverageGraph",
    "CoverageSummary",
    "DaemonSet",
    "Deployment",
    "EdgeType",
    "Gateway",
    "GatewayClass",
    "GraphBuilder",
    "GraphEdge",
    "GraphNode",
    "GRPCRoute",
    "HTTPRoute",
    "InvalidResourceError",
    "Listener",
    "LoadOptions",
    "NodeIdentity",
    "NodeType",
    "ObjectRef",
    "ParentRef",
    "ReferenceGrant",
    "ReferenceGrantIndex",
    "ResourceSet",
    "RouteCoverageDetail",
    "RouteCoverageView",
    "Service",
    "StatefulSet",
    "TCPRoute",
    "TLSRoute",
    "Workload",
    "build_coverage_graph",
    "build_graph",
    "coerce_resources",
    "collect_resources",
    "compute_route_coverage_view",
    "export_json",
    "flatten_workloads",
    "grant_allows",
    "load_and_build",
    "load_directory",
    "load_json",
    "match_workloads",
    "parse_documents",
    "selector_matches",
    "to_networkx",
    "unreachable_routes",
    "validate_coverage_graph",
]
