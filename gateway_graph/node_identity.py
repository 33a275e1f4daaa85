from gateway_graph.models import NodeType


class NodeIdentity:
    """
    Stable node and edge ids for the coverage graph.

    Node ids double as lookup keys, so the same resource always maps to the
    same id whether it came from the input set or was synthesized as a
    placeholder for a dangling reference.

    Format:
        gateway:<namespace>/<name>
        gatewayclass:<name>
        <gateway id>:listener:<listener name or port>
        route:<namespace>/<name>
        service:<namespace>/<name>
        workload:<namespace>/<kind lowercased>:<name>
        referencegrant:<namespace>/<name>

    Example:
        >>> identity = NodeIdentity()
        >>> identity.listener_id(identity.gateway_id("default", "gw"), "web")
        'gateway:default/gw:listener:web'
    """

    def gateway_id(self, namespace: str, name: str) -> str:
        return self._namespaced(NodeType.GATEWAY, namespace, name)

    def gateway_class_id(self, name: str) -> str:
        return f"{NodeType.GATEWAY_CLASS.value}:{name}"

    def listener_id(self, gateway_id: str, listener_key: str | int) -> str:
        return f"{gateway_id}:{NodeType.LISTENER.value}:{listener_key}"

    def route_id(self, namespace: str, name: str) -> str:
        return self._namespaced(NodeType.ROUTE, namespace, name)

    def service_id(self, namespace: str, name: str) -> str:
        return self._namespaced(NodeType.SERVICE, namespace, name)

    def workload_id(self, namespace: str, kind: str, name: str) -> str:
        return f"{NodeType.WORKLOAD.value}:{namespace}/{kind.lower()}:{name}"

    def reference_grant_id(self, namespace: str, name: str) -> str:
        return self._namespaced(NodeType.REFERENCE_GRANT, namespace, name)

    def edge_id(self, source: str, target: str) -> str:
        return f"{source}->{target}"

    def backend_edge_id(self, route_id: str, service_id: str, index: int) -> str:
        """Backend edges carry the ref's position so repeated refs stay distinct."""
        return f"{route_id}->{service_id}:{index}"

    def grant_edge_id(self, route_id: str, service_id: str) -> str:
        return f"grant:{route_id}->{service_id}"

    def _namespaced(self, node_type: NodeType, namespace: str, name: str) -> str:
        return f"{node_type.value}:{namespace}/{name}"
