"""
ReferenceGrant evaluation.

A ReferenceGrant lives in the namespace being referenced *into* and lists
which namespaces may reference which kinds (optionally which names) there.
This module only answers whether a reference would be permitted; it never
enforces anything.
"""

import logging
from collections.abc import Iterable

from gateway_graph.models import ReferenceGrant

logger = logging.getLogger(__name__)


class ReferenceGrantIndex:
    """
    ReferenceGrants indexed by the namespace they live in.

    Example:
        >>> index = ReferenceGrantIndex(grants)
        >>> index.allows("apps", "backends", "Service", "billing")
        True
    """

    def __init__(self, reference_grants: Iterable[ReferenceGrant] = ()) -> None:
        self._by_namespace: dict[str, list[ReferenceGrant]] = {}
        for grant in reference_grants:
            self._by_namespace.setdefault(grant.namespace, []).append(grant)

    def __len__(self) -> int:
        return sum(len(grants) for grants in self._by_namespace.values())

    def allows(self, from_namespace: str, to_namespace: str, kind: str, name: str) -> bool:
        """
        Check whether a reference from ``from_namespace`` to the resource
        ``kind``/``name`` in ``to_namespace`` is permitted.

        Same-namespace references never need a grant. The kind on the ``from``
        side of a grant is not compared: the source namespace alone gates it.

        Args:
            from_namespace: Namespace of the referencing resource
            to_namespace: Namespace of the referenced resource
            kind: Kind of the referenced resource (e.g. "Service")
            name: Name of the referenced resource

        Returns:
            True if the reference is allowed
        """
        if from_namespace == to_namespace:
            return True

        for grant in self._by_namespace.get(to_namespace, []):
            if not any(_to_matches(entry.kind, entry.name, kind, name) for entry in grant.spec.to):
                continue
            if any(entry.namespace == from_namespace for entry in grant.spec.from_):
                logger.debug(
                    f"ReferenceGrant {to_namespace}/{grant.name} allows "
                    f"{from_namespace} -> {kind}/{name}"
                )
                return True

        return False


def _to_matches(grant_kind: str, grant_name: str | None, kind: str, name: str) -> bool:
    return grant_kind == kind and (not grant_name or grant_name == name)


def grant_allows(
    reference_grants: Iterable[ReferenceGrant],
    from_namespace: str,
    to_namespace: str,
    kind: str,
    name: str,
) -> bool:
    """One-off form of :meth:`ReferenceGrantIndex.allows`."""
    return ReferenceGrantIndex(reference_grants).allows(from_namespace, to_namespace, kind, name)
