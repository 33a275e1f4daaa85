"""Basic usage example for gateway-graph."""

import logging

from gateway_graph import (
    LoadOptions,
    compute_route_coverage_view,
    load_and_build,
    unreachable_routes,
    validate_coverage_graph,
)


def main():
    """Load the sample manifests and report route coverage."""
    logging.basicConfig(level=logging.INFO)

    graph = load_and_build(LoadOptions(data_dir="examples/data"))
    summary = graph.summary

    print("\nCoverage:")
    print(f"  Routes: {summary.routes} ({summary.covered_routes} covered)")
    print(f"  Coverage: {summary.coverage_percent:.1f}%")
    print(f"  Backends: {summary.resolved_backends}/{summary.backend_refs} resolved")

    print("\nRoutes:")
    view = compute_route_coverage_view(graph.route_coverage, page_size="All")
    for row in view.visible:
        status = "covered" if row.covered else "UNCOVERED"
        print(f"  {row.kind} {row.namespace}/{row.name}: {status}")
        for ref in row.missing_parent_refs or []:
            print(f"    missing gateway {ref.namespace}/{ref.name}")
        for ref in row.missing_backends or []:
            print(f"    missing service {ref.namespace}/{ref.name}")

    print("\nRelationships:")
    for edge in graph.edges:
        print(f"  {edge.source} --[{edge.type}]--> {edge.target}")

    unreachable = unreachable_routes(graph)
    if unreachable:
        print(f"\nNot served by any declared gateway: {', '.join(unreachable)}")

    result = validate_coverage_graph(graph)
    print(f"\nValidation: {'PASS' if result['valid'] else 'FAIL'}")
    for issue in result["issues"]:
        print(f"  Issue: {issue['message']}")


if __name__ == "__main__":
    main()
