"""
Loading Gateway API manifests from YAML.

Documents are dispatched on their ``kind``. Anything the builder cannot
identify (non-mapping documents, unknown kinds, entries without
``metadata.name``) is dropped here with a warning, so the builder only ever
sees well-formed resources.
"""

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from gateway_graph.builder import GraphBuilder
from gateway_graph.models import (
    CoverageGraph,
    DaemonSet,
    Deployment,
    Gateway,
    GatewayClass,
    GRPCRoute,
    HTTPRoute,
    LoadOptions,
    ReferenceGrant,
    ResourceSet,
    Service,
    StatefulSet,
    TCPRoute,
    TLSRoute,
)

logger = logging.getLogger(__name__)

_KIND_TARGETS: dict[str, tuple[str, type[BaseModel]]] = {
    "Gateway": ("gateways", Gateway),
    "GatewayClass": ("gateway_classes", GatewayClass),
    "HTTPRoute": ("routes", HTTPRoute),
    "GRPCRoute": ("routes", GRPCRoute),
    "TLSRoute": ("routes", TLSRoute),
    "TCPRoute": ("routes", TCPRoute),
    "Service": ("services", Service),
    "Deployment": ("deployments", Deployment),
    "StatefulSet": ("stateful_sets", StatefulSet),
    "DaemonSet": ("daemon_sets", DaemonSet),
    "ReferenceGrant": ("reference_grants", ReferenceGrant),
}


def supported_kinds() -> list[str]:
    return list(_KIND_TARGETS)


def parse_documents(text: str) -> list[Any]:
    """
    Parse a (possibly multi-document) YAML string.

    Raises:
        yaml.YAMLError: If the text is not valid YAML
    """
    return [doc for doc in yaml.safe_load_all(text) if doc is not None]


def collect_resources(documents: Iterable[Any], source: str = "<input>") -> ResourceSet:
    """
    Sort parsed documents into a ResourceSet by kind.

    Args:
        documents: Parsed YAML documents
        source: Label used in log messages (usually a file name)

    Returns:
        ResourceSet holding every document that could be typed
    """
    buckets: dict[str, list[BaseModel]] = {}

    for index, doc in enumerate(documents):
        if not isinstance(doc, dict):
            logger.warning(f"Skipping non-object document #{index} in {source}")
            continue

        kind = doc.get("kind")
        target = _KIND_TARGETS.get(kind) if isinstance(kind, str) else None
        if target is None:
            logger.debug(
                f"Ignoring document #{index} of kind {kind!r} in {source}; "
                f"supported kinds: {', '.join(supported_kinds())}"
            )
            continue

        collection, model = target
        try:
            resource = model.model_validate(doc)
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid {kind} document #{index} in {source}: "
                f"{e.error_count()} validation error(s)"
            )
            continue

        buckets.setdefault(collection, []).append(resource)

    return ResourceSet(**buckets)


def merge_resource_sets(resource_sets: Iterable[ResourceSet]) -> ResourceSet:
    """Concatenate resource sets, keeping the order they are given in."""
    merged: dict[str, list[Any]] = {name: [] for name in ResourceSet.model_fields}
    for resource_set in resource_sets:
        for name in merged:
            merged[name].extend(getattr(resource_set, name))
    return ResourceSet(**merged)


def list_manifest_files(options: LoadOptions) -> list[Path]:
    """
    List manifest files under ``options.data_dir`` in sorted order.

    Sorted order keeps node and edge order stable across rebuilds.
    """
    data_dir = Path(options.data_dir)
    if not data_dir.is_dir():
        logger.warning(f"Manifest directory not found: {data_dir}")
        return []

    pattern = "**/*" if options.recursive else "*"
    extensions = {ext.lower() for ext in options.extensions}
    return sorted(
        path
        for path in data_dir.glob(pattern)
        if path.is_file() and path.suffix.lower() in extensions
    )


def load_file(path: Path) -> ResourceSet:
    """Load one manifest file; unreadable or unparsable files yield an empty set."""
    try:
        documents = parse_documents(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Cannot read {path}: {e}")
        return ResourceSet()
    except yaml.YAMLError as e:
        logger.warning(f"Cannot parse {path}: {e}")
        return ResourceSet()

    return collect_resources(documents, source=str(path))


def load_directory(options: LoadOptions | None = None) -> ResourceSet:
    """
    Load every manifest under the configured directory.

    Args:
        options: Load options (defaults to ``LoadOptions.from_env()``)

    Returns:
        Merged ResourceSet in sorted file order
    """
    options = options or LoadOptions.from_env()
    files = list_manifest_files(options)
    resources = merge_resource_sets(load_file(path) for path in files)

    logger.info(
        f"Loaded {len(resources.gateways)} gateways and {len(resources.routes)} routes "
        f"from {len(files)} file(s) in {options.data_dir}"
    )

    return resources


def load_and_build(options: LoadOptions | None = None) -> CoverageGraph:
    """
    Reload manifests and rebuild the graph from scratch.

    Meant to be called on every change notification; each call is
    independent of the previous one.
    """
    return GraphBuilder().build(load_directory(options))
