import logging
from collections import Counter
from typing import Any

from gateway_graph.models import CoverageGraph, EdgeType

logger = logging.getLogger(__name__)


def validate_coverage_graph(graph: CoverageGraph) -> dict[str, Any]:
    """
    Check a CoverageGraph against its structural invariants.

    Issues (make the graph invalid):
    - duplicate_node: two nodes share an id
    - dangling_edge: an edge endpoint is not a node id
    - route_count_mismatch: summary.routes differs from routeCoverage
    - coverage_count_mismatch: covered + uncovered differs from routes
    - coverage_percent_mismatch: percent disagrees with the counts

    Warnings (informational):
    - placeholder_node: node synthesized for a dangling reference
    - missing_backend: a route references a service that does not exist

    Args:
        graph: Graph to validate

    Returns:
        Dictionary with ``valid``, ``node_count``, ``edge_count``,
        ``issues`` and ``warnings``
    """
    issues: list[dict[str, Any]] = []
    warnings: list[dict[str, Any]] = []

    id_counts = Counter(node.id for node in graph.nodes)
    for node_id, count in id_counts.items():
        if count > 1:
            issues.append(
                {
                    "type": "duplicate_node",
                    "node_id": node_id,
                    "count": count,
                    "message": f"Node id {node_id} appears {count} times",
                }
            )

    for node in graph.nodes:
        if node.data and node.data.get("placeholder"):
            warnings.append(
                {
                    "type": "placeholder_node",
                    "node_id": node.id,
                    "message": f"{node.type} {node.id} is referenced but not declared",
                }
            )

    for edge in graph.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in id_counts:
                issues.append(
                    {
                        "type": "dangling_edge",
                        "edge_id": edge.id,
                        "node_id": endpoint,
                        "message": f"Edge {edge.id} references unknown node {endpoint}",
                    }
                )
        if edge.type == EdgeType.BACKEND and not edge.data:
            warnings.append(
                {
                    "type": "edge_without_metadata",
                    "edge_id": edge.id,
                    "message": f"Backend edge {edge.id} has no grant metadata",
                }
            )

    summary = graph.summary
    if summary.routes != len(graph.route_coverage):
        issues.append(
            {
                "type": "route_count_mismatch",
                "message": (
                    f"summary.routes={summary.routes} but "
                    f"{len(graph.route_coverage)} coverage records"
                ),
            }
        )

    if summary.covered_routes + summary.uncovered_routes != summary.routes:
        issues.append(
            {
                "type": "coverage_count_mismatch",
                "message": (
                    f"covered={summary.covered_routes} + uncovered={summary.uncovered_routes} "
                    f"!= routes={summary.routes}"
                ),
            }
        )

    expected_percent = (
        (summary.covered_routes / summary.routes) * 100 if summary.routes else 0.0
    )
    if abs(summary.coverage_percent - expected_percent) > 1e-9:
        issues.append(
            {
                "type": "coverage_percent_mismatch",
                "message": (
                    f"coveragePercent={summary.coverage_percent} but counts give "
                    f"{expected_percent}"
                ),
            }
        )

    for detail in graph.route_coverage:
        for missing in detail.missing_backends or []:
            warnings.append(
                {
                    "type": "missing_backend",
                    "route_id": detail.id,
                    "message": f"{detail.id} references missing service "
                    f"{missing.namespace}/{missing.name}",
                }
            )

    if issues:
        logger.warning(f"Coverage graph failed validation with {len(issues)} issue(s)")

    return {
        "valid": not issues,
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
        "issues": issues,
        "warnings": warnings,
    }
