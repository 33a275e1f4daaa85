import json
import logging
from pathlib import Path

import networkx as nx

from gateway_graph.models import CoverageGraph

logger = logging.getLogger(__name__)


def to_networkx(graph: CoverageGraph) -> nx.MultiDiGraph:
    """
    Project a CoverageGraph onto a NetworkX multigraph.

    Nodes carry ``type``, ``label`` and ``data``; edges are keyed by edge id
    so the parallel ``backend`` and ``grant`` edges between a route and a
    service stay distinct.

    Example:
        >>> nx_graph = to_networkx(coverage_graph)
        >>> list(nx_graph.successors("route:default/web"))
        ['gateway:default/gw:listener:http', 'service:default/web']
    """
    nx_graph = nx.MultiDiGraph()

    for node in graph.nodes:
        nx_graph.add_node(node.id, type=node.type, label=node.label, data=node.data or {})

    for edge in graph.edges:
        nx_graph.add_edge(
            edge.source,
            edge.target,
            key=edge.id,
            type=edge.type,
            data=edge.data or {},
        )

    return nx_graph


def unreachable_routes(graph: CoverageGraph) -> list[str]:
    """
    Route ids that are not served by any declared gateway or listener.

    A route is served when one of its ``routes`` edges ends at a gateway
    from the input set, or at a declared listener of one. Placeholder nodes
    synthesized for dangling references do not count.

    Args:
        graph: Coverage graph

    Returns:
        Route node ids, in node order
    """
    nx_graph = to_networkx(graph)

    def is_real(node_id: str) -> bool:
        return not nx_graph.nodes[node_id]["data"].get("placeholder")

    def serves(target: str) -> bool:
        target_type = nx_graph.nodes[target]["type"]
        if target_type == "gateway":
            return is_real(target)
        if target_type == "listener" and is_real(target):
            return any(
                nx_graph.nodes[owner]["type"] == "gateway" and is_real(owner)
                for owner in nx_graph.predecessors(target)
            )
        return False

    unreachable = []
    for node_id, attrs in nx_graph.nodes(data=True):
        if attrs["type"] != "route":
            continue
        targets = [
            target
            for _, target, edge_attrs in nx_graph.out_edges(node_id, data=True)
            if edge_attrs["type"] == "routes"
        ]
        if not any(serves(target) for target in targets):
            unreachable.append(node_id)

    return unreachable


def export_json(graph: CoverageGraph, filepath: str | Path) -> bool:
    """
    Write a CoverageGraph as JSON.

    Args:
        graph: Graph to export
        filepath: Output path (parent directories are created)

    Returns:
        True on success, False if the file could not be written
    """
    path = Path(filepath)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(graph.to_dict(), indent=2), encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to export graph to {path}: {e}")
        return False

    logger.info(f"Exported graph with {len(graph.nodes)} nodes to {path}")
    return True


def load_json(filepath: str | Path) -> CoverageGraph:
    """
    Load a CoverageGraph written by :func:`export_json`.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(filepath)
    return CoverageGraph.model_validate(json.loads(path.read_text(encoding="utf-8")))
